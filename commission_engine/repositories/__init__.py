"""
Repositories.

Data access layer for all models.
"""

from commission_engine.repositories.affiliate_repository import AffiliateRepository
from commission_engine.repositories.base import BaseRepository
from commission_engine.repositories.commission_repository import CommissionRepository
from commission_engine.repositories.referral_repository import ReferralRepository
from commission_engine.repositories.revshare_run_repository import (
    RevShareRunRepository,
)
from commission_engine.repositories.transaction_repository import (
    TransactionRepository,
)

__all__ = [
    "BaseRepository",
    "AffiliateRepository",
    "CommissionRepository",
    "ReferralRepository",
    "RevShareRunRepository",
    "TransactionRepository",
]
