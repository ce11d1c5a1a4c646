"""
Transaction model.

Immutable customer financial event. Source of truth for CPA eligibility
and period NGR; never mutated by the distribution engine.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import Base
from commission_engine.models.enums import TransactionStatus
from commission_engine.models.types import MoneyType


class Transaction(Base):
    """Transaction entity - deposit, withdrawal, bonus, bet or ggr."""

    __tablename__ = "transactions"

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    customer_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )

    # Platform transaction id (webhook deduplication)
    external_id: Mapped[str | None] = mapped_column(
        String(128), nullable=True, unique=True
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=TransactionStatus.COMPLETED.value, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"Transaction(id={self.id}, customer_id={self.customer_id!r}, "
            f"type={self.type!r}, amount={self.amount}, status={self.status!r})"
        )


# Composite indexes
Index(
    "idx_transaction_customer_created",
    Transaction.customer_id,
    Transaction.created_at,
)
Index(
    "idx_transaction_type_status_created",
    Transaction.type,
    Transaction.status,
    Transaction.created_at,
)
