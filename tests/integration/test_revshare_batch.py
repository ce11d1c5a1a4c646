"""Integration tests for RevShareBatchRunner."""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import update

from commission_engine.models import Affiliate
from commission_engine.services.events.publisher import EventPublisher
from commission_engine.services.results import DistributionStatus
from commission_engine.services.revshare.batch import RevShareBatchRunner


class CancellingPublisher(EventPublisher):
    """Sets a cancel event as soon as the first commission is published."""

    def __init__(self, cancel_event: asyncio.Event) -> None:
        self.cancel_event = cancel_event

    async def publish(self, event_type: str, payload: dict) -> None:
        if event_type == "commission.calculated":
            self.cancel_event.set()


@pytest.fixture
def source_affiliates(build_chain, add_referral, add_transactions, in_september):
    """Three root affiliates, each with one customer depositing 100."""

    async def _create() -> list[int]:
        ids = []
        for index in range(3):
            (affiliate_id,) = await build_chain(1)
            customer_id = f"cust-{index}"
            await add_referral(affiliate_id, customer_id)
            await add_transactions((customer_id, "deposit", "100", in_september))
            ids.append(affiliate_id)
        return ids

    return _create


class TestBatchRun:
    """Batch distribution over many affiliates."""

    @pytest.mark.asyncio
    async def test_processes_all_active(
        self, session_maker, commission_config, publisher, source_affiliates
    ):
        ids = await source_affiliates()

        batch = await RevShareBatchRunner(
            session_maker, commission_config, publisher
        ).run("2026-09")

        assert sorted(batch.results) == ids
        assert batch.count(DistributionStatus.DISTRIBUTED) == 3
        assert batch.total_amount == Decimal("3")
        assert batch.cancelled is False

    @pytest.mark.asyncio
    async def test_skips_inactive_affiliates(
        self, session_maker, commission_config, source_affiliates
    ):
        ids = await source_affiliates()
        async with session_maker() as db_session:
            await db_session.execute(
                update(Affiliate).where(Affiliate.id == ids[1]).values(status="suspended")
            )
            await db_session.commit()

        batch = await RevShareBatchRunner(session_maker, commission_config).run("2026-09")

        assert sorted(batch.results) == [ids[0], ids[2]]

    @pytest.mark.asyncio
    async def test_failure_is_isolated(
        self, session_maker, commission_config, source_affiliates
    ):
        """A missing affiliate fails alone; its siblings still distribute."""
        ids = await source_affiliates()

        batch = await RevShareBatchRunner(session_maker, commission_config).run(
            "2026-09", affiliate_ids=[ids[0], 9999, ids[1]]
        )

        assert batch.failed_ids == [9999]
        assert batch.results[9999].error_message == "Affiliate 9999 not found"
        assert batch.results[ids[0]].status == DistributionStatus.DISTRIBUTED
        assert batch.results[ids[1]].status == DistributionStatus.DISTRIBUTED

    @pytest.mark.asyncio
    async def test_rerun_reports_already_processed(
        self, session_maker, commission_config, source_affiliates
    ):
        ids = await source_affiliates()
        runner = RevShareBatchRunner(session_maker, commission_config)

        await runner.run("2026-09")
        second = await runner.run("2026-09")

        assert second.count(DistributionStatus.ALREADY_PROCESSED) == len(ids)
        assert second.total_amount == Decimal("0")

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_concurrent_workers(
        self, session_maker, commission_config, source_affiliates
    ):
        ids = await source_affiliates()

        batch = await RevShareBatchRunner(session_maker, commission_config).run(
            "2026-09", concurrency=3
        )

        assert batch.count(DistributionStatus.DISTRIBUTED) == len(ids)

    @pytest.mark.asyncio
    async def test_cancellation_stops_scheduling(
        self, session_maker, commission_config, source_affiliates
    ):
        ids = await source_affiliates()
        cancel_event = asyncio.Event()
        publisher = CancellingPublisher(cancel_event)

        batch = await RevShareBatchRunner(
            session_maker, commission_config, publisher
        ).run("2026-09", affiliate_ids=ids, cancel_event=cancel_event)

        assert batch.cancelled is True
        assert list(batch.results) == [ids[0]]
        assert batch.results[ids[0]].status == DistributionStatus.DISTRIBUTED
        assert batch.not_started == ids[1:]

    @pytest.mark.asyncio
    async def test_publishes_summary(
        self, session_maker, commission_config, publisher, source_affiliates
    ):
        ids = await source_affiliates()

        await RevShareBatchRunner(session_maker, commission_config, publisher).run(
            "2026-09", affiliate_ids=[*ids, 9999]
        )

        (summary,) = publisher.of_type("revshare.batch_completed")
        assert summary["period"] == "2026-09"
        assert summary["processed"] == 4
        assert summary["distributed"] == 3
        assert summary["failed"] == 1
        assert summary["cancelled"] is False

    @pytest.mark.asyncio
    async def test_invalid_concurrency(self, session_maker, commission_config):
        with pytest.raises(ValueError):
            await RevShareBatchRunner(session_maker, commission_config).run(
                "2026-09", affiliate_ids=[], concurrency=0
            )
