"""Event-bus publishers."""

from commission_engine.services.events.publisher import (
    EventPublisher,
    LoggingEventPublisher,
    RedisEventPublisher,
    commission_event_payload,
    publish_commissions,
)

__all__ = [
    "EventPublisher",
    "LoggingEventPublisher",
    "RedisEventPublisher",
    "commission_event_payload",
    "publish_commissions",
]
