#!/usr/bin/env python3
"""Initialize database tables."""

import asyncio
import sys

from loguru import logger

from commission_engine.config.database import async_engine
from commission_engine.models import Base

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create all commission engine tables."""
    logger.info("Connecting to database...")

    try:
        async with async_engine.begin() as conn:
            logger.info("Creating tables (checkfirst=True)...")
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    finally:
        await async_engine.dispose()

    logger.success(
        f"Database tables created: {', '.join(sorted(Base.metadata.tables))}"
    )


if __name__ == "__main__":
    asyncio.run(init_database())
