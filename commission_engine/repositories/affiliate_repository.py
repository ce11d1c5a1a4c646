"""
Affiliate repository.

Data access layer for the sponsor hierarchy and affiliate aggregates.
"""

from datetime import datetime

from sqlalchemy import Integer, case, literal_column, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import AffiliateStatus
from commission_engine.models.affiliate import Affiliate
from commission_engine.repositories.base import BaseRepository


class AffiliateRepository(BaseRepository[Affiliate]):
    """Repository for Affiliate entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize affiliate repository."""
        super().__init__(Affiliate, session)

    async def get_by_code(self, code: str) -> Affiliate | None:
        """
        Get affiliate by external code.

        Args:
            code: Affiliate code

        Returns:
            Affiliate or None
        """
        return await self.get_by(code=code)

    async def get_active_ids(self) -> list[int]:
        """
        Get IDs of all active affiliates, ordered by ID.

        Returns:
            List of affiliate IDs
        """
        stmt = (
            select(Affiliate.id)
            .where(Affiliate.status == AffiliateStatus.ACTIVE)
            .order_by(Affiliate.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_chain(self, start_id: int, max_levels: int) -> list[tuple[int, Affiliate]]:
        """
        Get the sponsor chain in one recursive query.

        Level 1 is the start affiliate, level k+1 is the sponsor of level k.
        Works on PostgreSQL and SQLite (WITH RECURSIVE).

        Args:
            start_id: Affiliate to start from
            max_levels: Maximum number of levels returned

        Returns:
            List of (level, affiliate) ordered by level
        """
        chain = (
            select(
                Affiliate.id.label("affiliate_id"),
                Affiliate.sponsor_id.label("sponsor_id"),
                literal_column("1", Integer).label("level"),
            )
            .where(Affiliate.id == start_id)
            .cte("sponsor_chain", recursive=True)
        )
        parent = Affiliate.__table__.alias("parent")
        chain = chain.union_all(
            select(
                parent.c.id,
                parent.c.sponsor_id,
                (chain.c.level + 1).label("level"),
            )
            .join(chain, parent.c.id == chain.c.sponsor_id)
            .where(chain.c.level < max_levels)
        )

        stmt = (
            select(chain.c.level, Affiliate)
            .join(Affiliate, Affiliate.id == chain.c.affiliate_id)
            .order_by(chain.c.level)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [(row.level, row.Affiliate) for row in result.all()]

    async def increment_validated_referrals(
        self, affiliate_id: int, delta: int
    ) -> int | None:
        """
        Atomically change validated referrals, never below zero.

        Args:
            affiliate_id: Affiliate ID
            delta: Signed change

        Returns:
            New count, or None if the affiliate does not exist
        """
        new_value = Affiliate.validated_referrals + delta
        stmt = (
            update(Affiliate)
            .where(Affiliate.id == affiliate_id)
            .values(
                validated_referrals=case(
                    (new_value < 0, 0),
                    else_=new_value,
                )
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None

        count = await self.session.execute(
            select(Affiliate.validated_referrals).where(Affiliate.id == affiliate_id)
        )
        return count.scalar_one()

    async def set_category(
        self, affiliate_id: int, category: str, category_level: int
    ) -> None:
        """
        Store the derived category fields.

        Args:
            affiliate_id: Affiliate ID
            category: Category name
            category_level: Level inside the category
        """
        stmt = (
            update(Affiliate)
            .where(Affiliate.id == affiliate_id)
            .values(category=category, category_level=category_level)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def touch_activity(self, affiliate_id: int, at: datetime) -> bool:
        """
        Move last_activity_at forward (never backwards).

        Args:
            affiliate_id: Affiliate ID
            at: Activity moment

        Returns:
            True if the affiliate exists
        """
        stmt = (
            update(Affiliate)
            .where(Affiliate.id == affiliate_id)
            .values(
                last_activity_at=case(
                    (Affiliate.last_activity_at.is_(None), at),
                    (Affiliate.last_activity_at < at, at),
                    else_=Affiliate.last_activity_at,
                )
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
