"""
Revenue-share distribution task.

Distributes one period for every active affiliate. Scheduled after each
period closes; a missing period specifier means the previous month.
"""

import dramatiq
from loguru import logger

from commission_engine.config.commission_config import get_commission_config
from commission_engine.config.settings import settings
from commission_engine.services.results import BatchResult
from commission_engine.services.revshare.batch import RevShareBatchRunner
from commission_engine.services.revshare.periods import (
    PeriodKind,
    RevSharePeriod,
    parse_period,
    previous_period,
)
from commission_engine.utils.datetime_utils import utc_now
from commission_engine.utils.redis_utils import get_redis_client
import jobs.broker  # noqa: F401  broker must be set before actors are declared
from jobs.async_runner import run_async
from jobs.utils.collaborators import build_collaborators
from jobs.utils.database import create_task_engine, create_task_session_maker


@dramatiq.actor(max_retries=3, time_limit=3_600_000)  # 1 hour
def process_revshare_period(period_spec: str | None = None) -> None:
    """
    Distribute revenue share for a period.

    Affiliates already processed for the period are skipped by the
    per-period guard, so a retried message only finishes the rest.

    Args:
        period_spec: "YYYY-MM", "YYYY-Www" or "YYYY-MM-DD..YYYY-MM-DD"
            (default: previous month)
    """
    if period_spec:
        period = parse_period(period_spec)
    else:
        period = previous_period(PeriodKind.MONTHLY, utc_now())

    logger.info(f"Starting revenue share distribution for {period.key}...")

    result = run_async(_process_revshare_period_async(period))

    summary = result.summary()
    if result.failed_ids:
        logger.error(
            f"Revenue share distribution for {period.key} finished with "
            f"{len(result.failed_ids)} failures",
            extra=summary,
        )
    else:
        logger.info(
            f"Revenue share distribution for {period.key} complete: "
            f"{summary['distributed']} distributed, "
            f"{summary['carried_over']} carried over, "
            f"total: {summary['total_amount']}"
        )


async def _process_revshare_period_async(period: RevSharePeriod) -> BatchResult:
    """Async implementation of the period distribution."""
    engine = create_task_engine()
    session_maker = create_task_session_maker(engine)
    redis_client = get_redis_client()
    config = get_commission_config()

    try:
        publisher, cache = build_collaborators(redis_client, config)
        runner = RevShareBatchRunner(session_maker, config, publisher, cache)
        return await runner.run(
            period, concurrency=settings.revshare_batch_concurrency
        )
    finally:
        await redis_client.aclose()
        await engine.dispose()
