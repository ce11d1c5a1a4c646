"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from commission_engine.models.affiliate import Affiliate
from commission_engine.models.base import Base
from commission_engine.models.commission import Commission
from commission_engine.models.enums import (
    CommissionStatus,
    CommissionType,
    RevShareRunStatus,
    TransactionStatus,
    TransactionType,
)
from commission_engine.models.referral import Referral
from commission_engine.models.revshare_run import RevShareRun
from commission_engine.models.transaction import Transaction

__all__ = [
    # Base
    "Base",
    # Enums
    "CommissionStatus",
    "CommissionType",
    "RevShareRunStatus",
    "TransactionStatus",
    "TransactionType",
    # Models
    "Affiliate",
    "Referral",
    "Transaction",
    "Commission",
    "RevShareRun",
]
