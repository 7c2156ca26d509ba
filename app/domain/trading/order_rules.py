"""
Domain service: timed-order rules.

Pure business logic for validating order submissions and deciding
profitability. No framework imports. No IO. No side effects.

Payout percentages are multipliers applied to the stake on an
admin-settled profit, keyed by the chosen duration.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from app.domain.trading.entities import Direction, Order
from app.domain.trading.errors import (
    InvalidDirectionError,
    InvalidDurationError,
    InvalidTickerError,
)

PAYOUT_PERCENTAGES: dict[str, int] = {
    "30s": 40,
    "60s": 60,
    "120s": 120,
    "300s": 300,
}

HUNDRED = Decimal("100")


def parse_direction(direction: str) -> Direction:
    """Return the Direction for ``direction`` or raise InvalidDirectionError."""
    try:
        return Direction(direction)
    except ValueError:
        raise InvalidDirectionError(direction) from None


def validate_ticker(ticker: str) -> str:
    """Return ``ticker`` upper-cased if it is in BASE/QUOTE form."""
    base, sep, quote = ticker.strip().upper().partition("/")
    if not sep or not base or not quote:
        raise InvalidTickerError(ticker)
    return f"{base}/{quote}"


def payout_percentage(duration: str) -> int:
    """Return the payout percentage for a duration such as "60s"."""
    try:
        return PAYOUT_PERCENTAGES[duration]
    except KeyError:
        raise InvalidDurationError(duration, tuple(PAYOUT_PERCENTAGES)) from None


def duration_seconds(duration: str) -> int:
    """Return the number of seconds encoded by a duration string ("30s" -> 30)."""
    return int(duration.rstrip("s"))


def expires_at(order: Order) -> datetime:
    """Return the moment an order's duration elapses."""
    return order.created_at + timedelta(seconds=duration_seconds(order.duration))


def is_expired(order: Order, now: datetime) -> bool:
    """True once wall-clock time since creation has reached the duration."""
    return expires_at(order) <= now


def time_remaining_seconds(order: Order, now: datetime) -> int:
    """Whole seconds left before expiry, never negative."""
    remaining = (expires_at(order) - now).total_seconds()
    return max(0, int(remaining))


def is_profitable(direction: Direction, entry_price: Decimal, current_price: Decimal) -> bool:
    """Decide profitability by direction and strict price movement.

    Long wins only if the price rose, short only if it fell.
    An unchanged price is unprofitable for both.
    """
    if direction is Direction.LONG:
        return current_price > entry_price
    return current_price < entry_price


def close_pnl_percent(
    direction: Direction, entry_price: Decimal, exit_price: Decimal
) -> Decimal:
    """Signed percentage PnL for a user-initiated close.

    Positive when the move favoured the order's direction.
    """
    change_percent = (exit_price - entry_price) / entry_price * HUNDRED
    if direction is Direction.LONG:
        return change_percent
    return -change_percent


def admin_profit_amount(quantity: Decimal, percentage: int) -> Decimal:
    """Credit paid on an admin-settled profit: stake x payout percentage."""
    return quantity * Decimal(percentage) / HUNDRED
