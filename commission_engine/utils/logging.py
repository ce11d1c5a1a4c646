"""
Logging setup.

Configures the loguru logger for services and workers.
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure logger sinks.

    Args:
        level: Minimum level for all sinks
        log_file: Optional path for a rotating file sink
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper())

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level.upper(),
            encoding="utf-8",
        )

    logger.info("Commission engine logging configured", extra={"level": level})
