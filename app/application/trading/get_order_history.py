"""
Use case: List every order a user has placed, newest first.
"""

from app.domain.trading.entities import Order
from app.domain.trading.ports import OrderRepository


class GetOrderHistoryUseCase:
    """Read-only view over a user's orders."""

    def __init__(self, orders: OrderRepository) -> None:
        self._orders = orders

    def execute(self, user_id: str) -> list[Order]:
        return self._orders.list_for_user(user_id)
