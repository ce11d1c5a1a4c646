"""
Revenue-share batch runner.

Runs RevenueShareEngine.distribute for many affiliates. Each affiliate
gets its own session and transaction; a failure is logged and recorded
but never aborts its siblings. Cancellation stops scheduling further
affiliates and never undoes completed ones.
"""

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import EVENT_REVSHARE_BATCH_COMPLETED
from commission_engine.config.commission_config import (
    CommissionConfig,
    get_commission_config,
)
from commission_engine.repositories.affiliate_repository import AffiliateRepository
from commission_engine.services.category.cache import CategoryCache
from commission_engine.services.events.publisher import (
    EventPublisher,
    LoggingEventPublisher,
)
from commission_engine.services.results import (
    BatchResult,
    DistributionResult,
    DistributionStatus,
)
from commission_engine.services.revshare.periods import RevSharePeriod, parse_period
from commission_engine.services.revshare.revenue_share_engine import RevenueShareEngine
from commission_engine.utils.exceptions import aborts_distribution

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class RevShareBatchRunner:
    """Distributes one period for a set of affiliates."""

    def __init__(
        self,
        session_factory: SessionFactory,
        config: CommissionConfig | None = None,
        publisher: EventPublisher | None = None,
        cache: CategoryCache | None = None,
    ) -> None:
        """
        Initialize batch runner.

        Args:
            session_factory: Callable returning an async session context
                (e.g. create_task_session_maker(engine))
            config: Commission configuration (defaults to settings)
            publisher: Event publisher shared by all distributions
            cache: Optional category cache
        """
        self.session_factory = session_factory
        self.config = config or get_commission_config()
        self.publisher = publisher or LoggingEventPublisher()
        self.cache = cache

    async def run(
        self,
        period: RevSharePeriod | str,
        affiliate_ids: list[int] | None = None,
        concurrency: int = 1,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchResult:
        """
        Run the batch.

        Args:
            period: Period or period specifier
            affiliate_ids: Affiliates to process (defaults to all active)
            concurrency: Maximum distributions in flight
            cancel_event: Set to stop scheduling further affiliates

        Returns:
            BatchResult with one DistributionResult per started affiliate
        """
        if isinstance(period, str):
            period = parse_period(period)
        if concurrency < 1:
            raise ValueError(f"Concurrency must be >= 1, got {concurrency}")

        if affiliate_ids is None:
            async with self.session_factory() as session:
                affiliate_ids = await AffiliateRepository(session).get_active_ids()

        batch = BatchResult(period=period.key)
        queue: asyncio.Queue[int] = asyncio.Queue()
        for affiliate_id in affiliate_ids:
            queue.put_nowait(affiliate_id)

        logger.info(
            "RevShare batch started",
            extra={
                "period": period.key,
                "affiliates": len(affiliate_ids),
                "concurrency": concurrency,
            },
        )

        async def worker() -> None:
            while True:
                try:
                    affiliate_id = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return

                if cancel_event is not None and cancel_event.is_set():
                    batch.cancelled = True
                    batch.not_started.append(affiliate_id)
                    continue

                batch.results[affiliate_id] = await self._distribute_one(
                    affiliate_id, period
                )

        worker_count = min(concurrency, max(1, len(affiliate_ids)))
        workers = [asyncio.create_task(worker()) for _ in range(worker_count)]
        await asyncio.gather(*workers)
        batch.not_started.sort()

        summary = batch.summary()
        logger.info("RevShare batch completed", extra=summary)
        await self.publisher.publish_safe(EVENT_REVSHARE_BATCH_COMPLETED, summary)

        return batch

    async def _distribute_one(
        self, affiliate_id: int, period: RevSharePeriod
    ) -> DistributionResult:
        try:
            async with self.session_factory() as session:
                engine = RevenueShareEngine(
                    session, self.config, self.publisher, self.cache
                )
                return await engine.distribute(affiliate_id, period)
        except Exception as e:
            # One affiliate never aborts the batch
            context = {
                "affiliate_id": affiliate_id,
                "period": period.key,
                "error_type": type(e).__name__,
            }
            if aborts_distribution(e):
                logger.error(f"RevShare distribution failed: {e}", extra=context)
            else:
                logger.exception("RevShare distribution failed", extra=context)
            return DistributionResult(
                status=DistributionStatus.FAILED,
                affiliate_id=affiliate_id,
                period=period.key,
                error_message=str(e),
            )
