"""
Database configuration.

Async engine built from settings.
"""

from sqlalchemy.ext.asyncio import create_async_engine

from commission_engine.config.settings import settings


async_engine = create_async_engine(
    settings.async_database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
)
