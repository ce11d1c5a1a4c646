"""
RevShareRun repository.

Data access layer for revenue-share runs (the per-period guard).
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.revshare_run import RevShareRun
from commission_engine.repositories.base import BaseRepository


class RevShareRunRepository(BaseRepository[RevShareRun]):
    """Repository for RevShareRun entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize revshare run repository."""
        super().__init__(RevShareRun, session)

    async def get_for_period(self, affiliate_id: int, period: str) -> RevShareRun | None:
        """
        Get the run of an affiliate for a period.

        Args:
            affiliate_id: Source affiliate ID
            period: Period key

        Returns:
            Run or None if the pair was never processed
        """
        stmt = (
            select(RevShareRun)
            .where(
                RevShareRun.affiliate_id == affiliate_id,
                RevShareRun.period == period,
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_affiliate(self, affiliate_id: int) -> list[RevShareRun]:
        """
        Get all runs of an affiliate, oldest period first.

        Args:
            affiliate_id: Source affiliate ID

        Returns:
            List of runs
        """
        stmt = (
            select(RevShareRun)
            .where(RevShareRun.affiliate_id == affiliate_id)
            .order_by(RevShareRun.period_start)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
