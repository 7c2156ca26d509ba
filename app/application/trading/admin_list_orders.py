"""
Use case: Admin order listing with filters and a summary.

Input: OrderSearchQuery
Output: OrderSearchResult (orders newest first + OrderSummary)
Side effects: Elapsed active orders are settled in-line.
Failure cases: None.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from app.application.trading.dtos import (
    OrderSearchQuery,
    OrderSearchResult,
    OrderSummary,
)
from app.application.trading.expiry import settle_elapsed_orders
from app.domain.trading.entities import Order, OrderStatus, utc_now
from app.domain.trading.ports import OrderRepository
from app.domain.trading.settlement import SettlementEngine

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class AdminListOrdersUseCase:
    """Searches orders across all users."""

    def __init__(
        self,
        orders: OrderRepository,
        engine: SettlementEngine,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._orders = orders
        self._engine = engine
        self._clock = clock

    def execute(self, query: OrderSearchQuery) -> OrderSearchResult:
        orders = self._orders.search(
            status=query.status,
            direction=query.direction,
            ticker=query.ticker,
            outcome=query.outcome,
            user_id=query.user_id,
            start=query.start,
            end=query.end,
            min_pnl=query.min_pnl,
            max_pnl=query.max_pnl,
            min_percentage=query.min_percentage,
            max_percentage=query.max_percentage,
        )
        orders = settle_elapsed_orders(self._engine, orders, self._clock())
        if query.status is not None:
            orders = [o for o in orders if o.status is query.status]

        logger.info("Admin order search returned %d orders", len(orders))
        return OrderSearchResult(orders=orders, summary=summarize(orders))


def summarize(orders: list[Order]) -> OrderSummary:
    """Aggregate counts and PnL over ``orders``."""
    total_pnl = sum((o.pnl for o in orders), ZERO)
    return OrderSummary(
        total=len(orders),
        active=sum(1 for o in orders if o.status is OrderStatus.ACTIVE),
        closed=sum(1 for o in orders if o.status is OrderStatus.CLOSED),
        cancelled=sum(1 for o in orders if o.status is OrderStatus.CANCELLED),
        total_pnl=total_pnl,
        profitable=sum(1 for o in orders if o.pnl > 0),
        loss=sum(1 for o in orders if o.pnl < 0),
        average_pnl=total_pnl / len(orders) if orders else ZERO,
    )
