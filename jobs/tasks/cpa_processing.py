"""
CPA processing task.

Pays the acquisition bonus of a referral. Enqueued by the transaction
webhook when an ingested transaction makes a referral eligible.
"""

import dramatiq
from loguru import logger

from commission_engine.config.commission_config import get_commission_config
from commission_engine.services.cpa.acquisition_engine import AcquisitionEngine
from commission_engine.services.results import DistributionResult
from commission_engine.utils.exceptions import NotFoundError
from commission_engine.utils.redis_utils import get_redis_client
import jobs.broker  # noqa: F401  broker must be set before actors are declared
from jobs.async_runner import run_async
from jobs.utils.collaborators import build_collaborators
from jobs.utils.database import create_task_engine, create_task_session_maker


@dramatiq.actor(max_retries=3, time_limit=60_000)  # 1 min
def process_referral_cpa(referral_id: int) -> None:
    """
    Process the CPA of one referral.

    Safe to deliver more than once: a processed referral is a no-op.
    Storage failures propagate so the broker retries the message.

    Args:
        referral_id: Referral ID
    """
    try:
        result = run_async(_process_referral_cpa_async(referral_id))
    except NotFoundError as e:
        logger.error(f"CPA processing skipped: {e}")
        return

    logger.info(
        f"CPA processing for referral {referral_id}: {result.status.value}",
        extra={
            "referral_id": referral_id,
            "levels_credited": len(result.credited_levels),
            "total_amount": str(result.total_amount),
        },
    )


async def _process_referral_cpa_async(referral_id: int) -> DistributionResult:
    """Async implementation of CPA processing."""
    engine = create_task_engine()
    session_maker = create_task_session_maker(engine)
    redis_client = get_redis_client()
    config = get_commission_config()

    try:
        publisher, cache = build_collaborators(redis_client, config)
        async with session_maker() as session:
            acquisition = AcquisitionEngine(session, config, publisher, cache)
            return await acquisition.process(referral_id)
    finally:
        await redis_client.aclose()
        await engine.dispose()
