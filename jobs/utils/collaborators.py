"""Redis-backed collaborators (event bus and category cache) for tasks."""
from redis.asyncio import Redis

from commission_engine.config.commission_config import CommissionConfig
from commission_engine.config.settings import settings
from commission_engine.services.category.cache import CategoryCache
from commission_engine.services.category.resolver import CategoryResolver
from commission_engine.services.events.publisher import RedisEventPublisher


def build_collaborators(
    redis_client: Redis, config: CommissionConfig
) -> tuple[RedisEventPublisher, CategoryCache]:
    """Create the event publisher and category cache sharing one client."""
    publisher = RedisEventPublisher(redis_client, settings.event_channel)
    cache = CategoryCache(
        redis_client,
        CategoryResolver(config),
        category_ttl=settings.category_cache_ttl_seconds,
        carryover_ttl=settings.carryover_cache_ttl_seconds,
    )
    return publisher, cache
