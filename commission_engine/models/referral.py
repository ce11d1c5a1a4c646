"""
Referral model.

One customer acquired by one affiliate. Carries the CPA idempotency guard.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import Base
from commission_engine.models.types import MoneyType


class Referral(Base):
    """Referral model - customer acquired by a direct affiliate."""

    __tablename__ = "referrals"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Direct acquirer
    affiliate_id: Mapped[int] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # A customer is acquired once
    customer_id: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True
    )

    # Validation (set once, when eligibility is first met)
    is_validated: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    validated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # CPA guard: flips to true exactly once
    cpa_processed: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    cpa_processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Aggregates from the customer's transactions (eligibility only)
    first_deposit: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )
    first_deposit_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    total_bets: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    total_ggr: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referral(id={self.id}, affiliate_id={self.affiliate_id}, "
            f"customer_id={self.customer_id!r}, cpa_processed={self.cpa_processed})>"
        )
