"""
Commission model.

One payout line created by the CPA or revenue-share engine. Only the
status field changes afterwards (payment processing).
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import Base
from commission_engine.models.enums import CommissionStatus
from commission_engine.models.types import MoneyType, RatePercentType


class Commission(Base):
    """
    Commission entity.

    Attributes:
        id: Primary key
        affiliate_id: Receiving affiliate
        source_affiliate_id: Affiliate whose customers generated the revenue
        referral_id: Referral that triggered a CPA payout
        transaction_id: Qualifying transaction (CPA)
        revshare_run_id: Revenue-share run that created the line
        type: cpa or revshare
        level: Hierarchy level of the receiver (1 = source itself)
        base_amount: CPA table amount or adjusted NGR
        percentage: RevShare percentage (revshare only)
        gross_amount: Amount before inactivity decay
        decay_percent: Inactivity reduction applied
        amount: Final amount credited
        status: calculated / approved / paid / cancelled
        period: Period key (revshare only)
    """

    __tablename__ = "commissions"
    __table_args__ = (
        UniqueConstraint(
            "referral_id", "level", name="uq_commission_referral_level"
        ),
        CheckConstraint("level >= 1", name="check_commission_level_positive"),
        CheckConstraint("amount >= 0", name="check_commission_amount_non_negative"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Receiver
    affiliate_id: Mapped[int] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Cause
    source_affiliate_id: Mapped[int | None] = mapped_column(
        ForeignKey("affiliates.id", ondelete="SET NULL"), nullable=True
    )
    referral_id: Mapped[int | None] = mapped_column(
        ForeignKey("referrals.id", ondelete="SET NULL"), nullable=True
    )
    transaction_id: Mapped[int | None] = mapped_column(
        ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True
    )
    revshare_run_id: Mapped[int | None] = mapped_column(
        ForeignKey("revshare_runs.id", ondelete="SET NULL"), nullable=True, index=True
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)

    # Amounts
    base_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    percentage: Mapped[Decimal | None] = mapped_column(
        RatePercentType, nullable=True
    )
    gross_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    decay_percent: Mapped[Decimal] = mapped_column(
        RatePercentType, default=Decimal("0"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=CommissionStatus.CALCULATED.value, nullable=False, index=True
    )
    period: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def is_settled(self) -> bool:
        """Check if the payment processor already took the line."""
        return self.status in (
            CommissionStatus.APPROVED.value,
            CommissionStatus.PAID.value,
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"Commission(id={self.id}, affiliate_id={self.affiliate_id}, "
            f"type={self.type!r}, level={self.level}, amount={self.amount}, "
            f"status={self.status!r})"
        )


# Composite indexes
Index(
    "idx_commission_affiliate_type_period",
    Commission.affiliate_id,
    Commission.type,
    Commission.period,
)
Index(
    "idx_commission_source_period",
    Commission.source_affiliate_id,
    Commission.period,
)
