"""
Affiliate model.

A node in the sponsor hierarchy. Each affiliate has at most one sponsor;
cycles are rejected when the affiliate is created, not here.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.config.business_constants import AffiliateStatus
from commission_engine.config.category_levels import AffiliateCategory
from commission_engine.models.base import Base
from commission_engine.models.types import MoneyType


class Affiliate(Base):
    """Affiliate model - sponsor hierarchy node with commission aggregates."""

    __tablename__ = "affiliates"
    __table_args__ = (
        CheckConstraint(
            "validated_referrals >= 0",
            name="check_affiliate_validated_referrals_non_negative",
        ),
        CheckConstraint(
            "negative_carryover >= 0",
            name="check_affiliate_carryover_non_negative",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # External affiliate code (links, dashboards)
    code: Mapped[str | None] = mapped_column(
        String(32), nullable=True, unique=True, index=True
    )

    # Hierarchy
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("affiliates.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(20), default=AffiliateStatus.ACTIVE, nullable=False, index=True
    )

    # Category progression (cached, derived from validated_referrals)
    validated_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    category: Mapped[str] = mapped_column(
        String(32), default=AffiliateCategory.JOGADOR.value, nullable=False
    )
    category_level: Mapped[int] = mapped_column(
        Integer, default=1, nullable=False
    )

    # Revenue share state
    negative_carryover: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    last_activity_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Aggregates (mutated only by CommissionLedger)
    available_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    lifetime_commissions: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

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

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Affiliate(id={self.id}, sponsor_id={self.sponsor_id}, "
            f"category={self.category!r}, level={self.category_level})>"
        )
