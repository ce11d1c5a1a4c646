"""
Unit tests for BaseRepository.

Tests cover:
- get_for_update issues a row-locking SELECT
- Plain fresh reads do not lock
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from commission_engine.models import Affiliate
from commission_engine.repositories.affiliate_repository import AffiliateRepository


def _session_returning(entity):
    result = MagicMock()
    result.scalar_one_or_none.return_value = entity
    session = AsyncMock()
    session.execute = AsyncMock(return_value=result)
    return session


def _compiled(session) -> str:
    stmt = session.execute.call_args.args[0]
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestRowLocking:
    """Locking reads."""

    @pytest.mark.asyncio
    async def test_get_for_update_locks_row(self):
        affiliate = Affiliate(id=7)
        session = _session_returning(affiliate)

        found = await AffiliateRepository(session).get_for_update(7)

        assert found is affiliate
        assert "FOR UPDATE" in _compiled(session)

    @pytest.mark.asyncio
    async def test_fresh_read_does_not_lock(self):
        session = _session_returning(None)

        assert await AffiliateRepository(session).get_by_id(7, fresh=True) is None
        assert "FOR UPDATE" not in _compiled(session)
