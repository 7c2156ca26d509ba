"""
Domain-specific errors for the trading bounded context.

All errors raised from the domain layer must be defined here.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class TradingDomainError(Exception):
    """Base error for all trading domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InvalidOrderError(TradingDomainError):
    """Raised when an order submission fails validation."""


class InvalidDirectionError(InvalidOrderError):
    """Raised when the order direction is not long or short."""

    def __init__(self, direction: str) -> None:
        super().__init__(
            f'Invalid direction: {direction!r}. Must be either "long" or "short".'
        )
        self.direction = direction


class InvalidTickerError(InvalidOrderError):
    """Raised when a ticker is not in BASE/QUOTE form."""

    def __init__(self, ticker: str) -> None:
        super().__init__(
            f'Invalid ticker: {ticker!r}. Must be in format like "BTC/USDT".'
        )
        self.ticker = ticker


class InvalidDurationError(InvalidOrderError):
    """Raised when the order duration has no payout percentage."""

    def __init__(self, duration: str, allowed: tuple[str, ...]) -> None:
        super().__init__(
            f"Invalid duration: {duration!r}. Allowed: {', '.join(allowed)}."
        )
        self.duration = duration
        self.allowed = allowed


class InvalidSwapError(TradingDomainError):
    """Raised when swap parameters are invalid."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid swap parameters: {reason}")
        self.reason = reason


class InvalidLedgerOperationError(TradingDomainError):
    """Raised when a ledger operation is malformed (bad amount or operation)."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid ledger operation: {reason}")
        self.reason = reason


class InvalidSettlementActionError(TradingDomainError):
    """Raised when an admin settlement action is not profit or loss."""

    def __init__(self, action: str) -> None:
        super().__init__(
            f"Invalid settlement action: {action!r}. Valid options: loss, profit."
        )
        self.action = action


class InsufficientFundsError(TradingDomainError):
    """Raised when a balance cannot cover the requested operation."""

    def __init__(self, currency: str, required: str, available: str) -> None:
        super().__init__(
            f"Insufficient {currency} balance: required {required}, "
            f"available {available}"
        )
        self.currency = currency
        self.required = required
        self.available = available


class PriceUnavailableError(TradingDomainError):
    """Raised when no price tier, including the static table, knows a symbol."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Price unavailable for symbol: {symbol}")
        self.symbol = symbol


class PriceSourceError(TradingDomainError):
    """Raised by a single price source when it cannot answer.

    Never escapes the price resolver; it only moves the chain on
    to the next tier.
    """

    def __init__(self, source: str, symbol: str, reason: str) -> None:
        super().__init__(f"{source} failed for {symbol}: {reason}")
        self.source = source
        self.symbol = symbol
        self.reason = reason


class OrderNotFoundError(TradingDomainError):
    """Raised when an order does not exist or is not in a settleable state."""

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order not found or already closed: {order_id}")
        self.order_id = order_id


class BalanceNotFoundError(TradingDomainError):
    """Raised when a required balance record does not exist."""

    def __init__(self, user_id: str, currency: str) -> None:
        super().__init__(f"No {currency} balance found for user: {user_id}")
        self.user_id = user_id
        self.currency = currency


class UserNotFoundError(TradingDomainError):
    """Raised when a user id or email does not match any user."""

    def __init__(self, user_ref: str) -> None:
        super().__init__(f"User not found: {user_ref}")
        self.user_ref = user_ref


class PriceTrackerNotFoundError(TradingDomainError):
    """Raised when no price has been observed for a ticker yet."""

    def __init__(self, ticker: str) -> None:
        super().__init__(f"No observed price for ticker: {ticker}")
        self.ticker = ticker
