"""Affiliate administration and transaction ingestion."""

from commission_engine.services.affiliate.affiliate_service import (
    AffiliateService,
    CategoryChange,
)
from commission_engine.services.affiliate.transaction_ingestor import (
    IngestResult,
    TransactionIngestor,
)

__all__ = ["AffiliateService", "CategoryChange", "IngestResult", "TransactionIngestor"]
