"""
Hierarchy walker.

Walks the sponsor chain upwards, bounded by an explicit depth.
Level 1 is the start affiliate itself.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import DEFAULT_HIERARCHY_DEPTH
from commission_engine.models.affiliate import Affiliate
from commission_engine.repositories.affiliate_repository import AffiliateRepository
from commission_engine.utils.exceptions import NotFoundError


@dataclass(frozen=True)
class HierarchyLevel:
    """One step of the sponsor chain."""

    level: int
    affiliate: Affiliate


class HierarchyWalker:
    """Reads the sponsor chain of an affiliate."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize walker."""
        self.session = session
        self.affiliate_repo = AffiliateRepository(session)

    async def walk(
        self, start_affiliate_id: int, max_levels: int = DEFAULT_HIERARCHY_DEPTH
    ) -> list[HierarchyLevel]:
        """
        Walk the chain one level at a time.

        Stops at max_levels or at the first affiliate without a sponsor,
        whichever comes first. Cycles are not checked; they are rejected
        when sponsors are assigned.

        Args:
            start_affiliate_id: Level-1 affiliate
            max_levels: Maximum number of levels returned

        Returns:
            Ordered list of levels, possibly shorter than max_levels

        Raises:
            NotFoundError: If the start affiliate does not exist
        """
        if max_levels < 1:
            return []

        start = await self.affiliate_repo.get_by_id(start_affiliate_id, fresh=True)
        if start is None:
            raise NotFoundError("Affiliate", start_affiliate_id)

        chain = [HierarchyLevel(level=1, affiliate=start)]
        current = start

        while len(chain) < max_levels and current.sponsor_id is not None:
            sponsor = await self.affiliate_repo.get_by_id(current.sponsor_id, fresh=True)
            if sponsor is None:
                logger.warning(
                    "Sponsor missing from hierarchy, stopping walk",
                    extra={
                        "affiliate_id": current.id,
                        "sponsor_id": current.sponsor_id,
                    },
                )
                break
            chain.append(HierarchyLevel(level=len(chain) + 1, affiliate=sponsor))
            current = sponsor

        logger.debug(
            "Hierarchy walked",
            extra={
                "start_affiliate_id": start_affiliate_id,
                "max_levels": max_levels,
                "chain": [node.affiliate.id for node in chain],
            },
        )
        return chain

    async def walk_recursive(
        self, start_affiliate_id: int, max_levels: int = DEFAULT_HIERARCHY_DEPTH
    ) -> list[HierarchyLevel]:
        """
        Walk the chain with a single recursive CTE query.

        Same contract as walk().

        Args:
            start_affiliate_id: Level-1 affiliate
            max_levels: Maximum number of levels returned

        Returns:
            Ordered list of levels

        Raises:
            NotFoundError: If the start affiliate does not exist
        """
        if max_levels < 1:
            return []

        rows = await self.affiliate_repo.get_chain(start_affiliate_id, max_levels)
        if not rows:
            raise NotFoundError("Affiliate", start_affiliate_id)

        chain = [HierarchyLevel(level=level, affiliate=affiliate) for level, affiliate in rows]

        logger.debug(
            "Hierarchy walked (CTE)",
            extra={
                "start_affiliate_id": start_affiliate_id,
                "max_levels": max_levels,
                "chain_length": len(chain),
            },
        )
        return chain
