"""
Use case: List a user's active orders.

Input: user id
Output: list[ActiveOrderView] (order + time remaining)
Side effects: Elapsed orders are settled in-line as a loss of stake.
Failure cases: None.
"""

import logging
from datetime import datetime
from typing import Callable

from app.application.trading.dtos import ActiveOrderView
from app.application.trading.expiry import settle_elapsed_orders
from app.domain.trading.entities import OrderStatus, utc_now
from app.domain.trading.order_rules import time_remaining_seconds
from app.domain.trading.ports import OrderRepository
from app.domain.trading.settlement import SettlementEngine

logger = logging.getLogger(__name__)


class GetActiveOrdersUseCase:
    """Returns the caller's still-active orders after in-line expiry."""

    def __init__(
        self,
        orders: OrderRepository,
        engine: SettlementEngine,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._orders = orders
        self._engine = engine
        self._clock = clock

    def execute(self, user_id: str) -> list[ActiveOrderView]:
        now = self._clock()
        orders = self._orders.list_for_user(user_id, status=OrderStatus.ACTIVE)
        orders = settle_elapsed_orders(self._engine, orders, now)
        views = [
            ActiveOrderView(order=o, time_remaining_seconds=time_remaining_seconds(o, now))
            for o in orders
            if o.status is OrderStatus.ACTIVE
        ]
        logger.debug("User %s has %d active orders", user_id, len(views))
        return views
