"""
Use case: One settlement sweep over every active order.

Input: owner tag ("scheduler", "admin", ...)
Output: SweepReport
Side effects: Price tracker samples, order terminal transitions and
    ledger entries for every order settled.
Failure cases: None per order; a failure is logged and recorded on the
    report, and the sweep carries on with the next order.

Steps:
    1. Take the sweep guard, or report the run as skipped.
    2. Resolve each distinct ticker once and record it in the tracker.
    3. Settle every due order against its ticker's price.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from app.application.trading.dtos import SweepReport
from app.application.trading.sweep_guard import SweepGuard
from app.domain.trading.entities import Order, utc_now
from app.domain.trading.errors import TradingDomainError
from app.domain.trading.order_rules import is_expired
from app.domain.trading.ports import OrderRepository, PriceTrackerRepository
from app.domain.trading.price_resolver import PriceResolver
from app.domain.trading.settlement import SettlementEngine

logger = logging.getLogger(__name__)


class RunSettlementSweepUseCase:
    """Evaluates all active orders against freshly resolved prices."""

    def __init__(
        self,
        orders: OrderRepository,
        resolver: PriceResolver,
        engine: SettlementEngine,
        trackers: PriceTrackerRepository,
        guard: SweepGuard,
        require_expiry: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the sweep.

        Args:
            orders: Source of active orders.
            resolver: Tiered price resolver.
            engine: Settlement engine applying outcomes.
            trackers: Observed-price cache written once per ticker.
            guard: Process-wide sweep mutual exclusion.
            require_expiry: Only settle orders whose duration has elapsed.
            clock: Time source.
        """
        self._orders = orders
        self._resolver = resolver
        self._engine = engine
        self._trackers = trackers
        self._guard = guard
        self._require_expiry = require_expiry
        self._clock = clock

    def execute(self, owner: str = "scheduler") -> SweepReport:
        report = SweepReport(started_at=self._clock())
        with self._guard.hold(owner) as lease:
            if lease is None:
                logger.warning(
                    "Settlement sweep requested by %s skipped: another sweep is running",
                    owner,
                )
                report.skipped = True
            else:
                self._sweep(report)
        report.finished_at = self._clock()

        if not report.skipped:
            logger.info(
                "Settlement sweep by %s done in %.3fs: seen=%d settled=%d waiting=%d failed=%d",
                owner,
                report.duration_seconds,
                report.orders_seen,
                report.orders_settled,
                report.orders_waiting,
                report.orders_failed,
            )
        return report

    def _sweep(self, report: SweepReport) -> None:
        active = self._orders.list_active()
        report.orders_seen = len(active)
        if not active:
            return

        report.prices = self._resolve_prices(sorted({o.ticker for o in active}))

        now = self._clock()
        for order in active:
            if self._require_expiry and not is_expired(order, now):
                report.orders_waiting += 1
                continue
            self._settle_one(order, report.prices[order.ticker], report)

    def _resolve_prices(self, tickers: list[str]) -> dict[str, Decimal]:
        prices: dict[str, Decimal] = {}
        for ticker in tickers:
            resolved = self._resolver.resolve(ticker)
            prices[ticker] = resolved.price
            try:
                self._trackers.record(ticker, resolved.price, self._clock())
            except Exception:
                logger.warning("Could not record price for %s", ticker, exc_info=True)
        return prices

    def _settle_one(self, order: Order, price: Decimal, report: SweepReport) -> None:
        try:
            result = self._engine.settle_on_price(order, price)
        except TradingDomainError as exc:
            logger.warning("Skipping order %s: %s", order.id, exc.message)
            report.orders_failed += 1
            report.failures[order.id] = exc.message
            return
        except Exception as exc:
            logger.exception("Settlement of order %s failed", order.id)
            report.orders_failed += 1
            report.failures[order.id] = f"{type(exc).__name__}: {exc}"
            return

        if result is not None:
            report.orders_settled += 1
