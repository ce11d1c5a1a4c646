"""
Dramatiq broker configuration.

Redis-based message broker for commission jobs.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from commission_engine.config.settings import settings
from commission_engine.utils.exceptions import StorageFailureError
from commission_engine.utils.logging import setup_logging
from commission_engine.utils.redis_utils import get_redis_url_masked

setup_logging(settings.log_level, settings.log_file)

# Initialize Redis broker with graceful shutdown middleware
redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)


def _retry_when(retries_so_far: int, exception: Exception) -> bool:
    # Only storage failures are worth retrying; the guards make it safe
    return retries_so_far < 3 and isinstance(exception, StorageFailureError)


# ShutdownNotifications: lets workers stop between affiliates
# CurrentMessage: gives actors access to the message being processed
# Retries: exponential backoff for storage failures
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
redis_broker.add_middleware(
    Retries(
        max_retries=3,
        min_backoff=1000,  # 1 second
        max_backoff=60000,  # 1 minute
        retry_when=_retry_when,
    )
)

# Set as default broker
dramatiq.set_broker(redis_broker)

# Export broker
broker = redis_broker

logger.info(
    "Dramatiq broker initialized",
    extra={"redis": get_redis_url_masked()},
)
