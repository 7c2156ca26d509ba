"""
Data Transfer Objects for the trading application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from app.domain.trading.entities import LedgerEntry, Order, OrderStatus


@dataclass(frozen=True)
class SubmitOrderCommand:
    """Input DTO for opening a timed order.

    Attributes:
        user_id: Owner of the order.
        direction: "long" or "short".
        ticker: Trading pair in BASE/QUOTE form.
        duration: One of the payout-table durations ("30s", "60s", ...).
        quantity: Stake recorded on the order (not escrowed).
        display_duration: Optional client-side expiry timestamp.
    """

    user_id: str
    direction: str
    ticker: str
    duration: str
    quantity: Decimal = Decimal("0")
    display_duration: Optional[datetime] = None


@dataclass(frozen=True)
class ActiveOrderView:
    """An active order together with its remaining lifetime."""

    order: Order
    time_remaining_seconds: int


@dataclass(frozen=True)
class CloseOrderCommand:
    """Input DTO for a user-initiated close."""

    user_id: str
    order_id: str


@dataclass(frozen=True)
class AdminSettleCommand:
    """Input DTO for an admin profit/loss override.

    Attributes:
        order_id: Order to settle.
        action: "profit" or "loss".
    """

    order_id: str
    action: str


@dataclass(frozen=True)
class AdjustBalanceCommand:
    """Input DTO for an admin balance adjustment.

    Attributes:
        user_ref: User id or email.
        currency: Currency code, any case.
        amount: Positive delta.
        operation: "add" or "subtract".
        reason: Free-text note stored on the journal entry.
        network: Optional network tag.
    """

    user_ref: str
    currency: str
    amount: Decimal
    operation: str
    reason: Optional[str] = None
    network: Optional[str] = None


@dataclass(frozen=True)
class AdjustBalanceResult:
    """Output DTO for an admin balance adjustment."""

    user_id: str
    email: str
    entry: LedgerEntry


@dataclass(frozen=True)
class SwapCommand:
    """Input DTO for a currency swap."""

    user_id: str
    from_currency: str
    to_currency: str
    amount: Decimal


@dataclass(frozen=True)
class SwapResult:
    """Output DTO for a completed swap.

    Attributes:
        rate: Units of ``to_currency`` received per unit of ``from_currency``.
        debit: Ledger entry for the ``from_currency`` side.
        credit: Ledger entry for the ``to_currency`` side.
    """

    from_currency: str
    to_currency: str
    from_amount: Decimal
    to_amount: Decimal
    rate: Decimal
    price_source: str
    debit: LedgerEntry
    credit: LedgerEntry


@dataclass(frozen=True)
class OrderSearchQuery:
    """Input DTO for the admin order listing. Every filter is optional."""

    status: Optional[OrderStatus] = None
    direction: Optional[str] = None
    ticker: Optional[str] = None
    outcome: Optional[str] = None
    user_id: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    min_pnl: Optional[Decimal] = None
    max_pnl: Optional[Decimal] = None
    min_percentage: Optional[int] = None
    max_percentage: Optional[int] = None


@dataclass(frozen=True)
class OrderSummary:
    """Aggregate figures over a list of orders."""

    total: int
    active: int
    closed: int
    cancelled: int
    total_pnl: Decimal
    profitable: int
    loss: int
    average_pnl: Decimal


@dataclass(frozen=True)
class OrderSearchResult:
    """Output DTO for the admin order listing."""

    orders: list[Order]
    summary: OrderSummary


@dataclass
class SweepReport:
    """Outcome of one settlement sweep.

    Attributes:
        started_at: When the sweep began.
        finished_at: When it ended (None while running).
        skipped: True if another sweep held the guard.
        orders_seen: Active orders loaded at the start of the sweep.
        orders_settled: Orders this sweep closed.
        orders_waiting: Orders left active because they have not expired.
        orders_failed: Orders whose evaluation raised.
        prices: Price used per ticker during the sweep.
        failures: Order id -> error message.
    """

    started_at: datetime
    finished_at: Optional[datetime] = None
    skipped: bool = False
    orders_seen: int = 0
    orders_settled: int = 0
    orders_waiting: int = 0
    orders_failed: int = 0
    prices: dict[str, Decimal] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return round((self.finished_at - self.started_at).total_seconds(), 3)
