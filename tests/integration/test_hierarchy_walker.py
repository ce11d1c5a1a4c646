"""Integration tests for HierarchyWalker."""

import pytest

from commission_engine.services.hierarchy.walker import HierarchyWalker
from commission_engine.utils.exceptions import NotFoundError


class TestWalk:
    """Iterative walk."""

    @pytest.mark.asyncio
    async def test_stops_at_max_levels(self, session, build_chain):
        """A six-deep chain yields five levels; the sixth is never reached."""
        ids = await build_chain(6)

        chain = await HierarchyWalker(session).walk(ids[0], max_levels=5)

        assert [node.level for node in chain] == [1, 2, 3, 4, 5]
        assert [node.affiliate.id for node in chain] == ids[:5]

    @pytest.mark.asyncio
    async def test_stops_at_root(self, session, build_chain):
        """A short chain yields fewer levels than the cap."""
        ids = await build_chain(3)

        chain = await HierarchyWalker(session).walk(ids[0], max_levels=5)

        assert [node.affiliate.id for node in chain] == ids

    @pytest.mark.asyncio
    async def test_level_one_is_start(self, session, build_chain):
        ids = await build_chain(3)

        chain = await HierarchyWalker(session).walk(ids[1])

        assert chain[0].level == 1
        assert chain[0].affiliate.id == ids[1]
        assert len(chain) == 2

    @pytest.mark.asyncio
    async def test_zero_levels(self, session, build_chain):
        ids = await build_chain(2)

        assert await HierarchyWalker(session).walk(ids[0], max_levels=0) == []

    @pytest.mark.asyncio
    async def test_missing_start(self, session):
        with pytest.raises(NotFoundError):
            await HierarchyWalker(session).walk(999)


class TestWalkRecursive:
    """Single-query walk."""

    @pytest.mark.asyncio
    async def test_matches_iterative_walk(self, session, build_chain):
        ids = await build_chain(7)
        walker = HierarchyWalker(session)

        iterative = await walker.walk(ids[0], max_levels=5)
        recursive = await walker.walk_recursive(ids[0], max_levels=5)

        assert [(n.level, n.affiliate.id) for n in recursive] == [
            (n.level, n.affiliate.id) for n in iterative
        ]

    @pytest.mark.asyncio
    async def test_short_chain(self, session, build_chain):
        ids = await build_chain(2)

        chain = await HierarchyWalker(session).walk_recursive(ids[0], max_levels=5)

        assert [n.affiliate.id for n in chain] == ids

    @pytest.mark.asyncio
    async def test_missing_start(self, session):
        with pytest.raises(NotFoundError):
            await HierarchyWalker(session).walk_recursive(999)
