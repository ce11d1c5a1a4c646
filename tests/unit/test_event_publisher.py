"""
Unit tests for event publishers.

Tests cover:
- JSON payloads on the Redis channel
- Commission event payload shape
- Failures logged instead of raised
"""

import json
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from commission_engine.config.business_constants import EVENT_COMMISSION_CALCULATED
from commission_engine.models.commission import Commission
from commission_engine.services.events.publisher import (
    EventPublisher,
    LoggingEventPublisher,
    RedisEventPublisher,
    commission_event_payload,
    publish_commissions,
)


@pytest.fixture
def commission():
    """Unsaved revshare commission with an ID."""
    return Commission(
        id=42,
        affiliate_id=3,
        source_affiliate_id=1,
        type="revshare",
        level=3,
        base_amount=Decimal("1000"),
        gross_amount=Decimal("40"),
        amount=Decimal("40.00000000"),
        period="2026-09",
    )


class TestCommissionPayload:
    """Test commission.calculated payload."""

    def test_revshare_payload(self, commission):
        payload = commission_event_payload(commission)

        assert payload == {
            "commissionId": 42,
            "affiliateId": 3,
            "level": 3,
            "amount": "40.00000000",
            "commissionType": "revshare",
            "period": "2026-09",
            "sourceAffiliateId": 1,
        }


class TestRedisEventPublisher:
    """Test Redis pub/sub publisher."""

    @pytest.mark.asyncio
    async def test_publishes_json_with_type(self, mock_redis_client, commission):
        publisher = RedisEventPublisher(mock_redis_client, "affiliate-events")

        published = await publish_commissions(publisher, [commission])

        assert published == 1
        channel, message = mock_redis_client.publish.await_args.args
        assert channel == "affiliate-events"
        body = json.loads(message)
        assert body["type"] == EVENT_COMMISSION_CALCULATED
        assert body["commissionId"] == 42

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, mock_redis_client, commission):
        mock_redis_client.publish = AsyncMock(side_effect=RedisConnectionError("down"))
        publisher = RedisEventPublisher(mock_redis_client, "affiliate-events")

        published = await publish_commissions(publisher, [commission])

        assert published == 0


class TestLoggingEventPublisher:
    """Test the default publisher."""

    @pytest.mark.asyncio
    async def test_publish_safe(self):
        assert await LoggingEventPublisher().publish_safe("x", {"a": 1}) is True


class FailingPublisher(EventPublisher):
    """Publisher whose transport raises a non-Redis error."""

    async def publish(self, event_type: str, payload: dict) -> None:
        raise RuntimeError("broker rejected message")


class TestPublishSafe:
    """publish_safe never raises after the data is persisted."""

    @pytest.mark.asyncio
    async def test_any_publisher_error_returns_false(self):
        assert await FailingPublisher().publish_safe("x", {"a": 1}) is False

    @pytest.mark.asyncio
    async def test_commissions_not_counted(self, commission):
        assert await publish_commissions(FailingPublisher(), [commission]) == 0
