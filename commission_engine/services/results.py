"""
Structured results returned by the engines.

Callers receive which levels were credited, which were skipped and how
the carryover moved instead of exceptions for benign outcomes.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from commission_engine.config.business_constants import ZERO


class DistributionStatus(str, Enum):
    """Outcome of one CPA or revenue-share distribution."""

    DISTRIBUTED = "distributed"
    ALREADY_PROCESSED = "already_processed"
    CARRIED_OVER = "carried_over"
    NOT_ELIGIBLE = "not_eligible"
    FAILED = "failed"


class LevelStatus(str, Enum):
    """Outcome of one hierarchy level."""

    CREDITED = "credited"
    SKIPPED_NO_SPONSOR = "skipped_no_sponsor"
    SKIPPED_ZERO_AMOUNT = "skipped_zero_amount"


@dataclass
class LevelOutcome:
    """What happened at one hierarchy level."""

    level: int
    status: LevelStatus
    affiliate_id: int | None = None
    commission_id: int | None = None
    percentage: Decimal | None = None
    gross_amount: Decimal = ZERO
    decay_percent: Decimal = ZERO
    amount: Decimal = ZERO


@dataclass
class DistributionResult:
    """Result of AcquisitionEngine.process or RevenueShareEngine.distribute."""

    status: DistributionStatus
    affiliate_id: int | None = None
    referral_id: int | None = None
    period: str | None = None
    levels: list[LevelOutcome] = field(default_factory=list)
    ngr: Decimal | None = None
    adjusted_ngr: Decimal | None = None
    carryover_before: Decimal | None = None
    carryover_after: Decimal | None = None
    error_message: str | None = None

    @property
    def success(self) -> bool:
        """Anything but a failure counts as success for retries."""
        return self.status != DistributionStatus.FAILED

    @property
    def credited_levels(self) -> list[LevelOutcome]:
        """Levels that produced a commission."""
        return [lvl for lvl in self.levels if lvl.status == LevelStatus.CREDITED]

    @property
    def commission_ids(self) -> list[int]:
        """IDs of created commissions, by level."""
        return [
            lvl.commission_id
            for lvl in self.credited_levels
            if lvl.commission_id is not None
        ]

    @property
    def total_amount(self) -> Decimal:
        """Sum credited across all levels."""
        return sum((lvl.amount for lvl in self.credited_levels), ZERO)


@dataclass
class BatchResult:
    """Aggregated outcome of a revenue-share batch."""

    period: str
    results: dict[int, DistributionResult] = field(default_factory=dict)
    cancelled: bool = False
    not_started: list[int] = field(default_factory=list)

    def count(self, status: DistributionStatus) -> int:
        """Number of affiliates that ended with a status."""
        return sum(1 for result in self.results.values() if result.status == status)

    @property
    def failed_ids(self) -> list[int]:
        """Affiliates whose distribution failed."""
        return sorted(
            affiliate_id
            for affiliate_id, result in self.results.items()
            if result.status == DistributionStatus.FAILED
        )

    @property
    def total_amount(self) -> Decimal:
        """Sum credited by the whole batch."""
        return sum((result.total_amount for result in self.results.values()), ZERO)

    def summary(self) -> dict[str, object]:
        """Counts per status, for logs and the completion event."""
        return {
            "period": self.period,
            "processed": len(self.results),
            "distributed": self.count(DistributionStatus.DISTRIBUTED),
            "carried_over": self.count(DistributionStatus.CARRIED_OVER),
            "already_processed": self.count(DistributionStatus.ALREADY_PROCESSED),
            "failed": len(self.failed_ids),
            "not_started": len(self.not_started),
            "cancelled": self.cancelled,
            "total_amount": str(self.total_amount),
        }
