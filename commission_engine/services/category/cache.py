"""
Category cache.

Redis memoization of category resolution and short-lived carryover
snapshots. Never authoritative: every failure falls back to the resolver
or the database.
"""

from decimal import Decimal

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from commission_engine.services.category.resolver import (
    CategoryResolution,
    CategoryResolver,
)


CATEGORY_KEY = "category:resolved:{count}"
CARRYOVER_KEY = "carryover:{affiliate_id}"


class CategoryCache:
    """Cache collaborator in front of CategoryResolver."""

    def __init__(
        self,
        redis_client: Redis,
        resolver: CategoryResolver,
        category_ttl: int = 3600,
        carryover_ttl: int = 300,
    ) -> None:
        """
        Initialize cache.

        Args:
            redis_client: Async Redis client (decode_responses=True)
            resolver: Resolver used on cache miss
            category_ttl: TTL of category entries, seconds
            carryover_ttl: TTL of carryover snapshots, seconds
        """
        self.redis = redis_client
        self.resolver = resolver
        self.category_ttl = category_ttl
        self.carryover_ttl = carryover_ttl

    async def resolve(self, validated_referrals: int) -> CategoryResolution:
        """
        Resolve a category, memoized by referral count.

        Args:
            validated_referrals: Non-negative referral count

        Returns:
            Resolution (from cache or resolver)
        """
        key = CATEGORY_KEY.format(count=validated_referrals)

        try:
            cached = await self.redis.get(key)
        except RedisError as e:
            logger.warning(
                "Category cache read failed, resolving directly",
                extra={"key": key, "error": str(e)},
            )
            return self.resolver.resolve(validated_referrals)

        if cached is not None:
            try:
                index = int(cached)
                if 0 <= index < len(self.resolver.rows):
                    return self.resolver.resolution_at(index)
            except ValueError:
                pass
            logger.warning("Discarding malformed category cache entry", extra={"key": key})

        resolution = self.resolver.resolve(validated_referrals)

        try:
            await self.redis.set(key, str(resolution.row_index), ex=self.category_ttl)
        except RedisError as e:
            logger.warning(
                "Category cache write failed",
                extra={"key": key, "error": str(e)},
            )

        return resolution

    async def store_carryover(self, affiliate_id: int, carryover: Decimal) -> None:
        """
        Store a carryover snapshot for reporting.

        Args:
            affiliate_id: Affiliate ID
            carryover: Carryover after the last distribution
        """
        key = CARRYOVER_KEY.format(affiliate_id=affiliate_id)
        try:
            await self.redis.set(key, str(carryover), ex=self.carryover_ttl)
        except RedisError as e:
            logger.warning(
                "Carryover snapshot write failed",
                extra={"affiliate_id": affiliate_id, "error": str(e)},
            )

    async def get_carryover(self, affiliate_id: int) -> Decimal | None:
        """
        Read a carryover snapshot (reporting only).

        Args:
            affiliate_id: Affiliate ID

        Returns:
            Snapshot or None if missing, expired or unreadable
        """
        key = CARRYOVER_KEY.format(affiliate_id=affiliate_id)
        try:
            value = await self.redis.get(key)
        except RedisError as e:
            logger.warning(
                "Carryover snapshot read failed",
                extra={"affiliate_id": affiliate_id, "error": str(e)},
            )
            return None
        return Decimal(value) if value is not None else None

    async def invalidate_carryover(self, affiliate_id: int) -> None:
        """Drop the carryover snapshot of an affiliate."""
        key = CARRYOVER_KEY.format(affiliate_id=affiliate_id)
        try:
            await self.redis.delete(key)
        except RedisError as e:
            logger.warning(
                "Carryover snapshot invalidation failed",
                extra={"affiliate_id": affiliate_id, "error": str(e)},
            )
