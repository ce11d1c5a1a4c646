"""Tests for worker actors and broker retry policy."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from commission_engine.services.results import (
    BatchResult,
    DistributionResult,
    DistributionStatus,
    LevelOutcome,
    LevelStatus,
)
from commission_engine.utils.exceptions import NotFoundError, StorageFailureError
from jobs.broker import _retry_when
from jobs.tasks import cpa_processing, revshare_distribution


class TestRetryPolicy:
    """Only storage failures are retried."""

    def test_storage_failure_retried(self):
        assert _retry_when(0, StorageFailureError("db down")) is True

    def test_retries_capped(self):
        assert _retry_when(3, StorageFailureError("db down")) is False

    @pytest.mark.parametrize(
        "exc", [NotFoundError("Referral", 1), ValueError("bad period")]
    )
    def test_other_errors_not_retried(self, exc):
        assert _retry_when(0, exc) is False


def _returning(value):
    def fake_run_async(coro):
        coro.close()
        return value

    return fake_run_async


def _raising(exc):
    def fake_run_async(coro):
        coro.close()
        raise exc

    return fake_run_async


class TestCpaActor:
    """process_referral_cpa."""

    def test_missing_referral_is_dropped(self):
        with patch.object(
            cpa_processing, "run_async", side_effect=_raising(NotFoundError("Referral", 7))
        ):
            cpa_processing.process_referral_cpa.fn(7)

    def test_storage_failure_propagates(self):
        with patch.object(
            cpa_processing, "run_async", side_effect=_raising(StorageFailureError("db"))
        ):
            with pytest.raises(StorageFailureError):
                cpa_processing.process_referral_cpa.fn(7)

    def test_runs_engine(self):
        result = DistributionResult(
            status=DistributionStatus.DISTRIBUTED,
            affiliate_id=1,
            referral_id=7,
            levels=[
                LevelOutcome(level=1, status=LevelStatus.CREDITED, amount=Decimal("35"))
            ],
        )
        with patch.object(
            cpa_processing, "run_async", side_effect=_returning(result)
        ) as run_async:
            cpa_processing.process_referral_cpa.fn(7)

        run_async.assert_called_once()


class TestRevShareActor:
    """process_revshare_period."""

    def test_explicit_period(self):
        batch = BatchResult(period="2026-09")

        with patch.object(
            revshare_distribution, "_process_revshare_period_async", new_callable=MagicMock
        ) as process, patch.object(
            revshare_distribution, "run_async", return_value=batch
        ):
            revshare_distribution.process_revshare_period.fn("2026-09")

        (period,) = process.call_args.args
        assert period.key == "2026-09"

    def test_invalid_period_raises(self):
        with pytest.raises(ValueError):
            revshare_distribution.process_revshare_period.fn("not-a-period")
