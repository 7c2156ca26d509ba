"""
Tests for the settlement sweep, its guard and the scheduler around it.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.application.trading.run_settlement_sweep import RunSettlementSweepUseCase
from app.application.trading.sweep_guard import SweepGuard
from app.domain.trading.entities import OrderStatus, utc_now
from app.domain.trading.ports import PriceTrackerRepository
from app.infrastructure.trading.price_tracker_repository import (
    PriceTrackerRepositoryAdapter,
)
from app.infrastructure.trading.settlement_scheduler import SettlementScheduler


class FakeClock:
    """Manually advanced clock."""

    def __init__(self) -> None:
        self.now = utc_now()

    def __call__(self):
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def guard():
    return SweepGuard(lease_seconds=60)


@pytest.fixture
def sweep(order_repo, resolver, settlement_engine, tracker_repo, guard):
    return RunSettlementSweepUseCase(
        orders=order_repo,
        resolver=resolver,
        engine=settlement_engine,
        trackers=tracker_repo,
        guard=guard,
    )


class TestSweepGuard:
    """Tests for the lease-based sweep guard."""

    def test_second_acquire_is_refused(self, guard) -> None:
        lease = guard.try_acquire("scheduler")
        assert lease is not None
        assert guard.is_held
        assert guard.try_acquire("admin") is None

    def test_release_frees_the_guard(self, guard) -> None:
        lease = guard.try_acquire("scheduler")
        assert guard.release(lease) is True
        assert not guard.is_held
        assert guard.try_acquire("admin") is not None

    def test_stale_lease_is_taken_over(self) -> None:
        clock = FakeClock()
        guard = SweepGuard(lease_seconds=60, clock=clock)
        stale = guard.try_acquire("crashed")

        clock.advance(61)
        fresh = guard.try_acquire("scheduler")

        assert fresh is not None
        assert fresh.owner == "scheduler"
        assert guard.release(stale) is False
        assert guard.current_lease is fresh

    def test_hold_releases_on_exception(self, guard) -> None:
        with pytest.raises(RuntimeError):
            with guard.hold("scheduler") as lease:
                assert lease is not None
                raise RuntimeError("boom")
        assert not guard.is_held

    def test_hold_yields_none_when_busy(self, guard) -> None:
        guard.try_acquire("scheduler")
        with guard.hold("admin") as lease:
            assert lease is None
        assert guard.is_held


class TestSettlementSweep:
    """Tests for one sweep over the active orders."""

    def test_settles_expired_orders_and_resolves_each_ticker_once(
        self, sweep, price_source, order_repo, ledger_repo, fund, place_order
    ) -> None:
        fund("user-1", "1000")
        first = place_order(ticker="BTC/USDT", duration="30s", age_seconds=40)
        second = place_order(ticker="BTC/USDT", duration="30s", age_seconds=35)

        report = sweep.execute(owner="test")

        assert report.skipped is False
        assert report.orders_seen == 2
        assert report.orders_settled == 2
        assert report.prices == {"BTC/USDT": Decimal("51000")}
        assert price_source.calls == ["BTCUSDT"]
        assert order_repo.get(first.id).status is OrderStatus.CLOSED
        assert order_repo.get(second.id).status is OrderStatus.CLOSED
        # 1000 -> 1001 -> 1002.001
        assert ledger_repo.get_balance("user-1", "USDT").amount == Decimal("1002.001")

    def test_unexpired_orders_are_left_waiting(
        self, sweep, order_repo, fund, place_order
    ) -> None:
        fund("user-1", "1000")
        order = place_order(duration="300s")

        report = sweep.execute()

        assert report.orders_waiting == 1
        assert report.orders_settled == 0
        assert order_repo.get(order.id).status is OrderStatus.ACTIVE

    def test_settles_without_waiting_when_expiry_not_required(
        self, order_repo, resolver, settlement_engine, tracker_repo, guard, fund, place_order
    ) -> None:
        fund("user-1", "1000")
        place_order(duration="300s")
        sweep = RunSettlementSweepUseCase(
            orders=order_repo,
            resolver=resolver,
            engine=settlement_engine,
            trackers=tracker_repo,
            guard=guard,
            require_expiry=False,
        )
        assert sweep.execute().orders_settled == 1

    def test_failing_order_does_not_stop_the_sweep(
        self, sweep, order_repo, fund, place_order
    ) -> None:
        """The user without a balance fails; the other order still settles."""
        fund("user-1", "1000")
        broke = place_order(user_id="user-2", duration="30s", age_seconds=60)
        funded = place_order(user_id="user-1", duration="30s", age_seconds=45)

        report = sweep.execute()

        assert report.orders_failed == 1
        assert report.orders_settled == 1
        assert broke.id in report.failures
        assert order_repo.get(broke.id).status is OrderStatus.ACTIVE
        assert order_repo.get(funded.id).status is OrderStatus.CLOSED

    def test_second_sweep_settles_nothing_more(
        self, sweep, ledger_repo, fund, place_order
    ) -> None:
        fund("user-1", "1000")
        place_order(duration="30s", age_seconds=60)

        sweep.execute()
        again = sweep.execute()

        assert again.orders_seen == 0
        assert again.orders_settled == 0
        assert ledger_repo.get_balance("user-1", "USDT").amount == Decimal("1001")

    def test_sweep_is_skipped_while_guard_is_held(self, sweep, guard, fund, place_order) -> None:
        fund("user-1", "1000")
        place_order(duration="30s", age_seconds=60)
        guard.try_acquire("someone-else")

        report = sweep.execute(owner="admin")

        assert report.skipped is True
        assert report.orders_seen == 0

    def test_tracker_failure_does_not_stop_settlement(
        self, order_repo, resolver, settlement_engine, guard, fund, place_order
    ) -> None:
        trackers = MagicMock(spec=PriceTrackerRepository)
        trackers.record.side_effect = RuntimeError("disk full")
        fund("user-1", "1000")
        place_order(duration="30s", age_seconds=60)
        sweep = RunSettlementSweepUseCase(
            orders=order_repo,
            resolver=resolver,
            engine=settlement_engine,
            trackers=trackers,
            guard=guard,
        )

        report = sweep.execute()

        assert report.orders_settled == 1
        trackers.record.assert_called_once()

    def test_prices_are_recorded_in_tracker(
        self, sweep, tracker_repo, fund, place_order
    ) -> None:
        fund("user-1", "1000")
        place_order(ticker="ETH/USDT", duration="300s")

        sweep.execute()

        tracker = tracker_repo.get("ETH/USDT")
        assert tracker.current_price == Decimal("2500")
        assert len(tracker.history) == 1


class TestPriceTracker:
    """Tests for the bounded price history."""

    def test_history_is_capped_oldest_evicted(self, engine) -> None:
        repo = PriceTrackerRepositoryAdapter(engine, history_size=3)
        start = utc_now()
        for i in range(5):
            repo.record("BTC/USDT", Decimal(100 + i), start + timedelta(seconds=i))

        tracker = repo.get("BTC/USDT")

        assert tracker.current_price == Decimal("104")
        assert [p.price for p in tracker.history] == [
            Decimal("102"),
            Decimal("103"),
            Decimal("104"),
        ]

    def test_unknown_ticker(self, tracker_repo) -> None:
        assert tracker_repo.get("NOPE/USDT") is None


class TestSettlementScheduler:
    """Tests for the APScheduler wrapper."""

    def test_run_now_records_history(self, sweep) -> None:
        scheduler = SettlementScheduler(sweep, interval_seconds=300, max_history=2)
        for _ in range(3):
            scheduler.run_now()

        status = scheduler.get_status()

        assert status["running"] is False
        assert status["interval_seconds"] == 300
        assert status["next_run_at"] is None
        assert len(status["recent"]) == 2

    def test_start_and_stop(self, sweep) -> None:
        scheduler = SettlementScheduler(sweep, interval_seconds=3600)
        scheduler.start()
        try:
            assert scheduler.is_running
            assert scheduler.get_status()["next_run_at"] is not None
        finally:
            scheduler.stop()
        assert not scheduler.is_running
