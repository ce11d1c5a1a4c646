"""Integration tests for TransactionIngestor."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update

from commission_engine.config.commission_config import (
    CommissionConfig,
    CpaConfig,
    CpaModel,
)
from commission_engine.models import Affiliate, Referral
from commission_engine.models.enums import TransactionStatus, TransactionType
from commission_engine.services.affiliate.transaction_ingestor import (
    TransactionIngestor,
)
from commission_engine.utils.datetime_utils import ensure_utc


async def _referral(session_maker, referral_id):
    async with session_maker() as db_session:
        return await db_session.get(Referral, referral_id)


class TestRecord:
    """Transaction recording and referral aggregates."""

    @pytest.mark.asyncio
    async def test_qualifying_deposit_reports_eligibility(
        self,
        session,
        session_maker,
        commission_config,
        build_chain,
        add_referral,
        in_september,
    ):
        ids = await build_chain(1)
        referral_id = await add_referral(ids[0], "cust-1")

        result = await TransactionIngestor(session, commission_config).record(
            "cust-1", TransactionType.DEPOSIT, Decimal("30"), created_at=in_september
        )

        assert result.duplicate is False
        assert result.referral_id == referral_id
        assert result.cpa_eligible is True

        referral = await _referral(session_maker, referral_id)
        assert referral.first_deposit == Decimal("30")
        assert ensure_utc(referral.first_deposit_at) == in_september

    @pytest.mark.asyncio
    async def test_first_qualifying_deposit_kept(
        self, session, session_maker, commission_config, build_chain, add_referral, in_september
    ):
        ids = await build_chain(1)
        referral_id = await add_referral(ids[0], "cust-1")
        ingestor = TransactionIngestor(session, commission_config)

        first = await ingestor.record(
            "cust-1", TransactionType.DEPOSIT, Decimal("10"), created_at=in_september
        )
        second = await ingestor.record(
            "cust-1",
            TransactionType.DEPOSIT,
            Decimal("50"),
            created_at=in_september + timedelta(days=1),
        )
        third = await ingestor.record(
            "cust-1",
            TransactionType.DEPOSIT,
            Decimal("80"),
            created_at=in_september + timedelta(days=2),
        )

        assert first.cpa_eligible is False
        assert second.cpa_eligible is True
        assert third.cpa_eligible is True
        referral = await _referral(session_maker, referral_id)
        assert referral.first_deposit == Decimal("50")
        assert ensure_utc(referral.first_deposit_at) == in_september + timedelta(days=1)

    @pytest.mark.asyncio
    async def test_bets_and_ggr_aggregated(
        self, session, session_maker, build_chain, add_referral, in_september
    ):
        config = CommissionConfig(cpa=CpaConfig(model=CpaModel.B))
        ids = await build_chain(1)
        referral_id = await add_referral(ids[0], "cust-1")
        ingestor = TransactionIngestor(session, config)

        await ingestor.record(
            "cust-1", TransactionType.DEPOSIT, Decimal("30"), created_at=in_september
        )
        await ingestor.record(
            "cust-1", TransactionType.BET, Decimal("2"),
            created_at=in_september + timedelta(minutes=1),
        )
        result = await ingestor.record(
            "cust-1", TransactionType.GGR, Decimal("25"),
            created_at=in_september + timedelta(minutes=2),
        )

        assert result.cpa_eligible is True
        referral = await _referral(session_maker, referral_id)
        assert referral.total_bets == 1
        assert referral.total_ggr == Decimal("25")

    @pytest.mark.asyncio
    async def test_aggregates_add_to_stored_values(
        self, session, session_maker, commission_config, build_chain, add_referral, in_september
    ):
        """Increments apply to the stored row, not a copy loaded earlier."""
        ids = await build_chain(1)
        referral_id = await add_referral(ids[0], "cust-1")
        ingestor = TransactionIngestor(session, commission_config)

        # Load the referral into the ingestor's session, then change it elsewhere
        await session.get(Referral, referral_id)
        await session.commit()
        async with session_maker() as db_session:
            await db_session.execute(
                update(Referral)
                .where(Referral.id == referral_id)
                .values(total_bets=5, total_ggr=Decimal("10"))
            )
            await db_session.commit()

        await ingestor.record(
            "cust-1", TransactionType.BET, Decimal("1"), created_at=in_september
        )
        await ingestor.record(
            "cust-1", TransactionType.GGR, Decimal("-4"), created_at=in_september
        )

        referral = await _referral(session_maker, referral_id)
        assert referral.total_bets == 6
        assert referral.total_ggr == Decimal("6")

    @pytest.mark.asyncio
    async def test_updates_affiliate_activity(
        self, session, session_maker, commission_config, build_chain, add_referral, in_september
    ):
        ids = await build_chain(1)
        await add_referral(ids[0], "cust-1")

        await TransactionIngestor(session, commission_config).record(
            "cust-1", TransactionType.BET, Decimal("1"), created_at=in_september
        )

        async with session_maker() as db_session:
            affiliate = await db_session.get(Affiliate, ids[0])
        assert ensure_utc(affiliate.last_activity_at) == in_september

    @pytest.mark.asyncio
    async def test_pending_transaction_ignored_for_aggregates(
        self, session, session_maker, commission_config, build_chain, add_referral, in_september
    ):
        ids = await build_chain(1)
        referral_id = await add_referral(ids[0], "cust-1")

        result = await TransactionIngestor(session, commission_config).record(
            "cust-1",
            TransactionType.DEPOSIT,
            Decimal("100"),
            status=TransactionStatus.PENDING,
            created_at=in_september,
        )

        assert result.referral_id is None
        assert result.cpa_eligible is False
        referral = await _referral(session_maker, referral_id)
        assert referral.first_deposit is None

    @pytest.mark.asyncio
    async def test_unreferred_customer(self, session, commission_config, in_september):
        result = await TransactionIngestor(session, commission_config).record(
            "walk-in", TransactionType.DEPOSIT, Decimal("100"), created_at=in_september
        )

        assert result.transaction.id is not None
        assert result.referral_id is None

    @pytest.mark.asyncio
    async def test_duplicate_external_id(self, session, commission_config, in_september):
        ingestor = TransactionIngestor(session, commission_config)

        first = await ingestor.record(
            "cust-1", TransactionType.DEPOSIT, Decimal("100"),
            created_at=in_september, external_id="psp-1",
        )
        second = await ingestor.record(
            "cust-1", TransactionType.DEPOSIT, Decimal("100"),
            created_at=in_september, external_id="psp-1",
        )

        assert second.duplicate is True
        assert second.transaction.id == first.transaction.id

    @pytest.mark.asyncio
    async def test_negative_amount_rejected(self, session, commission_config):
        with pytest.raises(ValueError):
            await TransactionIngestor(session, commission_config).record(
                "cust-1", TransactionType.DEPOSIT, Decimal("-1")
            )
