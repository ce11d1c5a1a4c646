"""
RevShareRun model.

One record per (source affiliate, period). Inserted before carryover is
touched; the unique constraint is the at-most-once guard for revenue share.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import Base
from commission_engine.models.types import MoneyType


class RevShareRun(Base):
    """RevShareRun - NGR breakdown and carryover movement of one distribution."""

    __tablename__ = "revshare_runs"
    __table_args__ = (
        UniqueConstraint(
            "affiliate_id", "period", name="uq_revshare_run_affiliate_period"
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    affiliate_id: Mapped[int] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period: Mapped[str] = mapped_column(String(32), nullable=False)
    period_start: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    period_end: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    # NGR breakdown
    deposits: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    withdrawals: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    bonuses: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    ngr: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)

    # Carryover movement
    carryover_before: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    carryover_after: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    adjusted_ngr: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_distributed: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RevShareRun(id={self.id}, affiliate_id={self.affiliate_id}, "
            f"period={self.period!r}, ngr={self.ngr}, status={self.status!r})>"
        )
