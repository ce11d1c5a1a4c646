"""
Services.

Commission distribution engines and their collaborators.
"""

from commission_engine.services.affiliate import (
    AffiliateService,
    TransactionIngestor,
)
from commission_engine.services.category import CategoryCache, CategoryResolver
from commission_engine.services.cpa import AcquisitionEngine
from commission_engine.services.events import (
    EventPublisher,
    LoggingEventPublisher,
    RedisEventPublisher,
)
from commission_engine.services.hierarchy import HierarchyWalker
from commission_engine.services.ledger import CommissionLedger
from commission_engine.services.revshare import RevenueShareEngine, RevShareBatchRunner

__all__ = [
    "AcquisitionEngine",
    "AffiliateService",
    "CategoryCache",
    "CategoryResolver",
    "CommissionLedger",
    "EventPublisher",
    "HierarchyWalker",
    "LoggingEventPublisher",
    "RedisEventPublisher",
    "RevShareBatchRunner",
    "RevenueShareEngine",
    "TransactionIngestor",
]
