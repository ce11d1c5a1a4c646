"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings() at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./commission_engine_test.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from commission_engine.config.commission_config import CommissionConfig
from commission_engine.models import Affiliate, Base, Referral, Transaction
from commission_engine.models.enums import TransactionStatus, TransactionType
from commission_engine.services.category.resolver import CategoryResolver
from commission_engine.services.events.publisher import EventPublisher


class RecordingPublisher(EventPublisher):
    """In-memory event bus for assertions."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    async def publish(self, event_type: str, payload: dict) -> None:
        self.events.append((event_type, payload))

    def of_type(self, event_type: str) -> list[dict]:
        return [payload for name, payload in self.events if name == event_type]


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    On-disk SQLite engine.

    BEGIN IMMEDIATE makes every transaction take the write lock up front,
    so concurrent sessions serialize the way row locks do on PostgreSQL.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'commission_engine.db'}",
        poolclass=NullPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session factory bound to the test database."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_maker):
    """Single session for one test."""
    async with session_maker() as db_session:
        yield db_session


@pytest.fixture
def commission_config():
    """Default configuration (model A, default tables)."""
    return CommissionConfig()


@pytest.fixture
def publisher():
    """Recording event publisher."""
    return RecordingPublisher()


@pytest.fixture
def mock_redis_client():
    """Mock Redis client for caching tests."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.delete = AsyncMock()
    client.publish = AsyncMock(return_value=1)
    return client


@pytest.fixture
def build_chain(session_maker, commission_config):
    """
    Create a sponsor chain and return IDs bottom-first.

    build_chain(3) creates C <- B <- A and returns [A, B, C]
    (A is sponsored by B, C has no sponsor).
    """
    resolver = CategoryResolver(commission_config)

    async def _build(
        length: int,
        referrals: list[int] | None = None,
        activity: list[datetime | None] | None = None,
    ) -> list[int]:
        referrals = referrals or [0] * length
        activity = activity or [None] * length
        created: list[int] = []

        async with session_maker() as db_session:
            sponsor_id = None
            # Top of the chain first
            for index in reversed(range(length)):
                resolution = resolver.resolve(referrals[index])
                affiliate = Affiliate(
                    sponsor_id=sponsor_id,
                    validated_referrals=referrals[index],
                    category=resolution.category.value,
                    category_level=resolution.level,
                    last_activity_at=activity[index],
                )
                db_session.add(affiliate)
                await db_session.flush()
                created.append(affiliate.id)
                sponsor_id = affiliate.id
            await db_session.commit()

        return list(reversed(created))

    return _build


@pytest.fixture
def add_referral(session_maker):
    """Create a referral for an affiliate and return its ID."""

    async def _add(affiliate_id: int, customer_id: str) -> int:
        async with session_maker() as db_session:
            referral = Referral(affiliate_id=affiliate_id, customer_id=customer_id)
            db_session.add(referral)
            await db_session.commit()
            return referral.id

    return _add


@pytest.fixture
def add_transactions(session_maker):
    """Insert transactions: (customer_id, type, amount, created_at[, status])."""

    async def _add(*rows) -> list[int]:
        ids = []
        async with session_maker() as db_session:
            for row in rows:
                customer_id, tx_type, amount, created_at, *rest = row
                status = rest[0] if rest else TransactionStatus.COMPLETED
                transaction = Transaction(
                    customer_id=customer_id,
                    type=TransactionType(tx_type).value,
                    amount=Decimal(amount),
                    status=status.value,
                    created_at=created_at,
                )
                db_session.add(transaction)
                await db_session.flush()
                ids.append(transaction.id)
            await db_session.commit()
        return ids

    return _add


@pytest.fixture
def in_september():
    """A moment inside the 2026-09 period."""
    return datetime(2026, 9, 10, 12, 0, tzinfo=UTC)
