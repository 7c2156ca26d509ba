"""
Domain entities for the trading bounded context.

Entities represent core business objects with identity and lifecycle.
They contain no framework imports and no IO operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Union
from uuid import uuid4


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Direction(Enum):
    """Direction of a timed order."""

    LONG = "long"
    SHORT = "short"


class OrderStatus(Enum):
    """Lifecycle state of an order.

    PENDING_PROFIT is reserved for an admin-pending payout and is
    only ever left through an admin override.
    """

    ACTIVE = "active"
    PENDING_PROFIT = "pending_profit"
    CLOSED = "closed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.CLOSED, OrderStatus.CANCELLED)


VALID_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.ACTIVE: frozenset(
        {OrderStatus.CLOSED, OrderStatus.CANCELLED, OrderStatus.PENDING_PROFIT}
    ),
    OrderStatus.PENDING_PROFIT: frozenset({OrderStatus.CLOSED}),
    # Terminal states
    OrderStatus.CLOSED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def sources_for(target: OrderStatus) -> tuple[OrderStatus, ...]:
    """Return every status from which ``target`` may be entered."""
    return tuple(
        status for status, targets in VALID_TRANSITIONS.items() if target in targets
    )


class SettledBy(Enum):
    """Which path performed an order's terminal transition."""

    SWEEP = "sweep"
    EXPIRY = "expiry"
    USER = "user"
    ADMIN = "admin"


class LedgerOperation(Enum):
    """Direction of a balance mutation."""

    ADD = "add"
    SUBTRACT = "subtract"


class TransactionType(Enum):
    """Kind of journal entry."""

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    ADMIN_ADJUSTMENT = "admin_adjustment"
    REFERRAL_BONUS = "referral_bonus"
    ADMIN_DEPOSIT = "admin_deposit"
    SWAP = "swap"
    TRADE_SETTLEMENT = "trade_settlement"


class TransactionStatus(Enum):
    """Status recorded on a journal entry."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    DELETED = "deleted"
    SUCCESS = "success"


class LedgerOutcome(Enum):
    """What a ledger operation did to the balance.

    CLAMPED means a subtraction asked for more than the balance held
    and the balance was floored at zero instead of going negative.
    """

    CREATED = "created"
    APPLIED = "applied"
    CLAMPED = "clamped"


# ── Settlement outcome (sum type) ────────────────────────────────────


@dataclass(frozen=True)
class Pending:
    """The order has not been settled yet."""

    kind: str = field(default="pending", init=False)


@dataclass(frozen=True)
class Profit:
    """The order settled in the user's favour for ``amount``."""

    amount: Decimal
    kind: str = field(default="profit", init=False)


@dataclass(frozen=True)
class Loss:
    """The order settled against the user for ``amount``."""

    amount: Decimal
    kind: str = field(default="loss", init=False)


SettlementOutcome = Union[Pending, Profit, Loss]


def outcome_from_parts(kind: str, amount: Decimal) -> SettlementOutcome:
    """Rebuild a SettlementOutcome from its persisted (kind, amount) pair."""
    if kind == "profit":
        return Profit(amount)
    if kind == "loss":
        return Loss(amount)
    return Pending()


def outcome_amount(outcome: SettlementOutcome) -> Decimal:
    """Return the magnitude carried by an outcome (zero for Pending)."""
    if isinstance(outcome, (Profit, Loss)):
        return outcome.amount
    return Decimal("0")


# ── Ledger ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Balance:
    """Funds held by one user in one currency."""

    user_id: str
    currency: str
    amount: Decimal
    network: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Transaction:
    """Immutable journal entry written alongside every balance mutation."""

    id: str
    user_id: str
    currency: str
    network: str
    amount: Decimal
    balance_after: Decimal
    type: TransactionType
    status: TransactionStatus
    created_at: datetime
    reason: Optional[str] = None
    from_currency: Optional[str] = None
    to_currency: Optional[str] = None


@dataclass(frozen=True)
class LedgerEntry:
    """Result of a single ledger operation."""

    balance: Balance
    transaction: Transaction
    outcome: LedgerOutcome


# ── Orders ───────────────────────────────────────────────────────────


@dataclass
class Order:
    """A timed directional bet against an observed price."""

    user_id: str
    direction: Direction
    ticker: str
    entry_price: Decimal
    duration: str
    percentage: int
    quantity: Decimal = Decimal("0")
    current_price: Optional[Decimal] = None
    exit_price: Optional[Decimal] = None
    display_duration: Optional[datetime] = None
    outcome: SettlementOutcome = field(default_factory=Pending)
    pnl: Decimal = Decimal("0")
    status: OrderStatus = OrderStatus.ACTIVE
    settled_by: Optional[SettledBy] = None
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def amount(self) -> Decimal:
        """Settled gain/loss magnitude."""
        return outcome_amount(self.outcome)


@dataclass(frozen=True)
class OrderSettlement:
    """Terminal transition requested for an order.

    Carries the new status and the values recorded with it. The source
    states it may leave are passed separately to OrderRepository.settle.
    """

    status: OrderStatus
    outcome: SettlementOutcome
    pnl: Decimal
    settled_by: SettledBy
    current_price: Optional[Decimal] = None
    exit_price: Optional[Decimal] = None


# ── Prices ───────────────────────────────────────────────────────────


class PriceTier(Enum):
    """Stage of the price resolver's fallback chain."""

    PRIMARY = "primary"
    MIRROR = "mirror"
    AGGREGATOR = "aggregator"
    STATIC = "static"


@dataclass(frozen=True)
class ResolvedPrice:
    """A price returned by the resolver, tagged with the tier that answered."""

    symbol: str
    price: Decimal
    source: str
    tier: PriceTier


@dataclass(frozen=True)
class PricePoint:
    """A single observed price sample."""

    price: Decimal
    timestamp: datetime


@dataclass(frozen=True)
class PriceTracker:
    """Observed price cache for one ticker. Not authoritative for settlement."""

    ticker: str
    current_price: Decimal
    last_updated: datetime
    history: list[PricePoint] = field(default_factory=list)


@dataclass(frozen=True)
class User:
    """Minimal read-only view of a user owned by the auth system."""

    id: str
    email: str
