"""
Use case: Close an order at the owner's request.

Input: CloseOrderCommand (user_id, order_id)
Output: Order (status=closed, exit price and percentage PnL set)
Side effects: Order terminal transition. The balance is not touched.
Failure cases: OrderNotFoundError, PriceUnavailableError.
"""

import logging

from app.application.trading.dtos import CloseOrderCommand
from app.domain.trading.entities import Order, OrderStatus
from app.domain.trading.errors import OrderNotFoundError
from app.domain.trading.ports import OrderRepository
from app.domain.trading.price_resolver import PriceResolver
from app.domain.trading.settlement import SettlementEngine

logger = logging.getLogger(__name__)


class CloseOrderUseCase:
    """Prices the exit and records the user close."""

    def __init__(
        self,
        orders: OrderRepository,
        resolver: PriceResolver,
        engine: SettlementEngine,
    ) -> None:
        self._orders = orders
        self._resolver = resolver
        self._engine = engine

    def execute(self, command: CloseOrderCommand) -> Order:
        """Run the close use case.

        Orders owned by someone else are reported as not found.
        """
        order = self._orders.get(command.order_id)
        if (
            order is None
            or order.user_id != command.user_id
            or order.status is not OrderStatus.ACTIVE
        ):
            raise OrderNotFoundError(command.order_id)

        exit_price = self._resolver.resolve(order.ticker, strict=True).price
        result = self._engine.close_by_user(order, exit_price)
        return result.order
