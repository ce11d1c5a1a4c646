"""
Transaction repository.

Aggregations over immutable customer transactions.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.enums import TransactionStatus, TransactionType
from commission_engine.models.referral import Referral
from commission_engine.models.transaction import Transaction
from commission_engine.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def get_by_external_id(self, external_id: str) -> Transaction | None:
        """
        Get transaction by platform ID.

        Args:
            external_id: Platform transaction ID

        Returns:
            Transaction or None
        """
        return await self.get_by(external_id=external_id)

    async def sum_by_type_for_affiliate(
        self,
        affiliate_id: int,
        start: datetime,
        end: datetime,
        types: tuple[TransactionType, ...],
    ) -> dict[str, Decimal]:
        """
        Sum completed transactions of an affiliate's customers by type.

        Args:
            affiliate_id: Direct acquirer of the customers
            start: Range start (inclusive)
            end: Range end (exclusive)
            types: Transaction types to aggregate

        Returns:
            Mapping type value -> sum (missing types are 0)
        """
        stmt = (
            select(Transaction.type, func.sum(Transaction.amount))
            .join(Referral, Referral.customer_id == Transaction.customer_id)
            .where(
                Referral.affiliate_id == affiliate_id,
                Transaction.status == TransactionStatus.COMPLETED.value,
                Transaction.type.in_([t.value for t in types]),
                Transaction.created_at >= start,
                Transaction.created_at < end,
            )
            .group_by(Transaction.type)
        )
        result = await self.session.execute(stmt)

        sums = {t.value: Decimal("0") for t in types}
        for tx_type, total in result.all():
            sums[tx_type] = Decimal(str(total or 0))
        return sums

    async def get_first_deposit_at_least(
        self, customer_id: str, min_amount: Decimal
    ) -> Transaction | None:
        """
        Get the earliest completed deposit of at least min_amount.

        Args:
            customer_id: Customer ID
            min_amount: Deposit threshold

        Returns:
            Qualifying deposit or None
        """
        stmt = (
            select(Transaction)
            .where(
                Transaction.customer_id == customer_id,
                Transaction.type == TransactionType.DEPOSIT.value,
                Transaction.status == TransactionStatus.COMPLETED.value,
                Transaction.amount >= min_amount,
            )
            .order_by(Transaction.created_at, Transaction.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_activity_since(
        self, customer_id: str, since: datetime
    ) -> tuple[int, Decimal]:
        """
        Count bets and sum GGR recorded at or after a moment.

        Args:
            customer_id: Customer ID
            since: Lower bound (inclusive)

        Returns:
            Tuple of (bet count, GGR sum)
        """
        bets_stmt = select(func.count(Transaction.id)).where(
            Transaction.customer_id == customer_id,
            Transaction.type == TransactionType.BET.value,
            Transaction.status == TransactionStatus.COMPLETED.value,
            Transaction.created_at >= since,
        )
        ggr_stmt = select(func.sum(Transaction.amount)).where(
            Transaction.customer_id == customer_id,
            Transaction.type == TransactionType.GGR.value,
            Transaction.status == TransactionStatus.COMPLETED.value,
            Transaction.created_at >= since,
        )

        bets = (await self.session.execute(bets_stmt)).scalar() or 0
        ggr = (await self.session.execute(ggr_stmt)).scalar()
        return int(bets), Decimal(str(ggr or 0))
