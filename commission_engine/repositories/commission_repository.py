"""
Commission repository.

Data access layer for Commission model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.commission import Commission
from commission_engine.models.enums import CommissionStatus, CommissionType
from commission_engine.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[Commission]):
    """Repository for Commission entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(Commission, session)

    async def get_by_referral(self, referral_id: int) -> list[Commission]:
        """
        Get CPA commissions of a referral, ordered by level.

        Args:
            referral_id: Referral ID

        Returns:
            List of commissions
        """
        stmt = (
            select(Commission)
            .where(
                Commission.referral_id == referral_id,
                Commission.type == CommissionType.CPA.value,
            )
            .order_by(Commission.level)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_run(self, run_id: int, include_cancelled: bool = False) -> list[Commission]:
        """
        Get commissions created by a revenue-share run.

        Args:
            run_id: RevShareRun ID
            include_cancelled: Include reversed lines

        Returns:
            List of commissions ordered by level
        """
        stmt = select(Commission).where(Commission.revshare_run_id == run_id)
        if not include_cancelled:
            stmt = stmt.where(Commission.status != CommissionStatus.CANCELLED.value)
        # Status may have been changed by the payment processor
        stmt = stmt.order_by(Commission.level, Commission.id).execution_options(
            populate_existing=True
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_affiliate(
        self,
        affiliate_id: int,
        commission_type: CommissionType | None = None,
        period: str | None = None,
    ) -> list[Commission]:
        """
        Get commissions received by an affiliate.

        Args:
            affiliate_id: Receiver ID
            commission_type: Optional type filter
            period: Optional period key filter

        Returns:
            List of commissions
        """
        stmt = select(Commission).where(Commission.affiliate_id == affiliate_id)
        if commission_type is not None:
            stmt = stmt.where(Commission.type == commission_type.value)
        if period is not None:
            stmt = stmt.where(Commission.period == period)
        stmt = stmt.order_by(Commission.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_total_for_affiliate(
        self, affiliate_id: int, commission_type: CommissionType | None = None
    ) -> Decimal:
        """
        Sum non-cancelled commission amounts received by an affiliate.

        Args:
            affiliate_id: Receiver ID
            commission_type: Optional type filter

        Returns:
            Total amount
        """
        stmt = select(func.sum(Commission.amount)).where(
            Commission.affiliate_id == affiliate_id,
            Commission.status != CommissionStatus.CANCELLED.value,
        )
        if commission_type is not None:
            stmt = stmt.where(Commission.type == commission_type.value)
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
