"""
Unit tests for CategoryCache.

Tests cover:
- Cache miss writes the resolved row index
- Cache hit skips the write
- Redis failures fall back to the resolver
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from commission_engine.config.category_levels import AffiliateCategory
from commission_engine.services.category.cache import CategoryCache


@pytest.fixture
def cache(mock_redis_client, resolver):
    """Create CategoryCache over a mocked Redis client."""
    return CategoryCache(mock_redis_client, resolver, category_ttl=60, carryover_ttl=30)


class TestCategoryCache:
    """Test category memoization."""

    @pytest.mark.asyncio
    async def test_miss_resolves_and_stores(self, cache, mock_redis_client):
        resolution = await cache.resolve(31)

        assert resolution.category == AffiliateCategory.AFILIADO
        mock_redis_client.set.assert_awaited_once_with(
            "category:resolved:31", str(resolution.row_index), ex=60
        )

    @pytest.mark.asyncio
    async def test_hit_uses_cached_row(self, cache, mock_redis_client, resolver):
        index = resolver.resolve(150).row_index
        mock_redis_client.get = AsyncMock(return_value=str(index))

        resolution = await cache.resolve(150)

        assert resolution.category == AffiliateCategory.PROFISSIONAL
        mock_redis_client.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_entry_is_replaced(self, cache, mock_redis_client):
        mock_redis_client.get = AsyncMock(return_value="not-a-number")

        resolution = await cache.resolve(0)

        assert resolution.category == AffiliateCategory.JOGADOR
        mock_redis_client.set.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_read_failure_falls_back(self, cache, mock_redis_client):
        mock_redis_client.get = AsyncMock(side_effect=RedisConnectionError("down"))

        resolution = await cache.resolve(11)

        assert resolution.category == AffiliateCategory.INICIANTE
        mock_redis_client.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_write_failure_is_swallowed(self, cache, mock_redis_client):
        mock_redis_client.set = AsyncMock(side_effect=RedisConnectionError("down"))

        resolution = await cache.resolve(5)

        assert resolution.level == 2


class TestCarryoverSnapshot:
    """Test carryover snapshots (reporting only)."""

    @pytest.mark.asyncio
    async def test_store_and_read(self, cache, mock_redis_client):
        await cache.store_carryover(7, Decimal("100.5"))
        mock_redis_client.set.assert_awaited_once_with("carryover:7", "100.5", ex=30)

        mock_redis_client.get = AsyncMock(return_value="100.5")
        assert await cache.get_carryover(7) == Decimal("100.5")

    @pytest.mark.asyncio
    async def test_read_failure_returns_none(self, cache, mock_redis_client):
        mock_redis_client.get = AsyncMock(side_effect=RedisConnectionError("down"))

        assert await cache.get_carryover(7) is None

    @pytest.mark.asyncio
    async def test_invalidate(self, cache, mock_redis_client):
        await cache.invalidate_carryover(7)

        mock_redis_client.delete.assert_awaited_once_with("carryover:7")
