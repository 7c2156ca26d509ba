"""
Use case: Open a timed directional order.

Input: SubmitOrderCommand (user_id, direction, ticker, duration, quantity)
Output: Order (status=active)
Side effects: One order row. The stake is recorded, not escrowed.
Failure cases: InvalidOrderError subclasses, InsufficientFundsError,
    PriceUnavailableError.
"""

import logging

from app.application.trading.dtos import SubmitOrderCommand
from app.domain.trading.entities import Order
from app.domain.trading.errors import InsufficientFundsError, InvalidOrderError
from app.domain.trading.order_rules import (
    parse_direction,
    payout_percentage,
    validate_ticker,
)
from app.domain.trading.ports import BalanceLedgerRepository, OrderRepository
from app.domain.trading.price_resolver import PriceResolver

logger = logging.getLogger(__name__)


class SubmitOrderUseCase:
    """Validates a submission, prices it and stores the new order."""

    def __init__(
        self,
        orders: OrderRepository,
        balances: BalanceLedgerRepository,
        resolver: PriceResolver,
        settlement_currency: str = "USDT",
    ) -> None:
        self._orders = orders
        self._balances = balances
        self._resolver = resolver
        self._currency = settlement_currency

    def execute(self, command: SubmitOrderCommand) -> Order:
        """Run the submission use case.

        Args:
            command: The order parameters chosen by the user.

        Returns:
            The persisted active order with entry price and payout percentage.
        """
        direction = parse_direction(command.direction)
        ticker = validate_ticker(command.ticker)
        percentage = payout_percentage(command.duration)
        if command.quantity < 0:
            raise InvalidOrderError(
                f"Quantity must not be negative, got {command.quantity}"
            )

        balance = self._balances.get_balance(command.user_id, self._currency)
        available = balance.amount if balance is not None else 0
        if available <= 0:
            raise InsufficientFundsError(
                currency=self._currency,
                required="> 0",
                available=str(available),
            )

        resolved = self._resolver.resolve(ticker, strict=True)

        order = Order(
            user_id=command.user_id,
            direction=direction,
            ticker=ticker,
            entry_price=resolved.price,
            current_price=resolved.price,
            duration=command.duration,
            display_duration=command.display_duration,
            percentage=percentage,
            quantity=command.quantity,
        )
        self._orders.add(order)

        logger.info(
            "Order %s opened: user=%s %s %s entry=%s (%s) duration=%s pct=%d",
            order.id,
            order.user_id,
            direction.value,
            ticker,
            resolved.price,
            resolved.source,
            order.duration,
            percentage,
        )
        return order
