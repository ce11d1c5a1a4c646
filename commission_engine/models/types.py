"""
Standard type definitions for database models.

Provides consistent types for monetary and percentage fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, commissions
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Precise rate percentage type for revenue-share and decay percentages
# Precision: 10 digits total, 4 after decimal point
# Suitable for: 18.2100%, 50.0000%
RatePercentType = DECIMAL(10, 4)
