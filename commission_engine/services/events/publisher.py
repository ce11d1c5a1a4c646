"""
Event publishers.

Domain events are announced after the database transaction commits.
Delivery is at-least-once from the engine's point of view; consumers
must tolerate duplicates.
"""

import json
from typing import Any

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from commission_engine.config.business_constants import EVENT_COMMISSION_CALCULATED
from commission_engine.models.commission import Commission


class EventPublisher:
    """Event-bus collaborator interface."""

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """
        Publish one event.

        Args:
            event_type: Event name (e.g. "commission.calculated")
            payload: JSON-serializable body
        """
        raise NotImplementedError

    async def publish_safe(self, event_type: str, payload: dict[str, Any]) -> bool:
        """
        Publish and log failures instead of raising.

        Persisted commissions are never undone because the bus is down.

        Returns:
            True if published
        """
        try:
            await self.publish(event_type, payload)
            return True
        except RedisError as e:
            logger.error(
                "Event publication failed",
                extra={"event_type": event_type, "error": str(e)},
            )
            return False
        except Exception as e:
            logger.exception(
                "Event publication failed",
                extra={"event_type": event_type, "error": str(e)},
            )
            return False


class LoggingEventPublisher(EventPublisher):
    """Logs events only (no bus configured)."""

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """Log the event."""
        logger.info(f"Event {event_type}", extra={"payload": payload})


class RedisEventPublisher(EventPublisher):
    """Publishes JSON events on a Redis pub/sub channel."""

    def __init__(self, redis_client: Redis, channel: str) -> None:
        """
        Initialize publisher.

        Args:
            redis_client: Async Redis client
            channel: Pub/sub channel name
        """
        self.redis = redis_client
        self.channel = channel

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """Publish the event as JSON."""
        message = json.dumps({"type": event_type, **payload}, default=str)
        receivers = await self.redis.publish(self.channel, message)
        logger.debug(
            "Event published",
            extra={
                "event_type": event_type,
                "channel": self.channel,
                "receivers": receivers,
            },
        )


def commission_event_payload(commission: Commission) -> dict[str, Any]:
    """
    Build the commission.calculated payload.

    Args:
        commission: Persisted commission

    Returns:
        Event body (amounts as strings)
    """
    payload: dict[str, Any] = {
        "commissionId": commission.id,
        "affiliateId": commission.affiliate_id,
        "level": commission.level,
        "amount": str(commission.amount),
        "commissionType": commission.type,
    }
    if commission.period is not None:
        payload["period"] = commission.period
    if commission.source_affiliate_id is not None:
        payload["sourceAffiliateId"] = commission.source_affiliate_id
    if commission.referral_id is not None:
        payload["referralId"] = commission.referral_id
    return payload


async def publish_commissions(
    publisher: EventPublisher, commissions: list[Commission]
) -> int:
    """
    Announce created commissions, one event each.

    Args:
        publisher: Event publisher
        commissions: Commissions persisted by a committed transaction

    Returns:
        Number of events published
    """
    published = 0
    for commission in commissions:
        if await publisher.publish_safe(
            EVENT_COMMISSION_CALCULATED, commission_event_payload(commission)
        ):
            published += 1
    return published
