"""Database engine and session factory for worker tasks."""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from commission_engine.config.settings import settings


def create_task_engine() -> AsyncEngine:
    """Create an engine for worker tasks (no pooling across event loops)."""
    return create_async_engine(
        settings.async_database_url,
        echo=False,
        poolclass=NullPool,
    )


def create_task_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create a session maker for worker tasks."""
    if engine is None:
        engine = create_task_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
