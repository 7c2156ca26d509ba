"""
Pydantic schemas for trading API request/response validation.

These schemas enforce input validation and define the API contract.
Domain rules (payout table, ticker form) are enforced by the domain
layer so that every caller gets the same error messages.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.application.trading.dtos import ActiveOrderView, OrderSummary, SweepReport
from app.domain.trading.entities import (
    Balance,
    LedgerEntry,
    Order,
    PriceTracker,
    Transaction,
)

CURRENCY_PATTERN = r"^[A-Za-z0-9]{2,16}$"


# ------------------------------------------------------------------
# Orders
# ------------------------------------------------------------------


class SubmitOrderRequest(BaseModel):
    """Request schema for opening a timed order.

    Attributes:
        direction: "long" or "short".
        ticker: Trading pair such as "BTC/USDT".
        duration: One of "30s", "60s", "120s", "300s".
        quantity: Stake recorded on the order.
        display_duration: Optional client-side expiry timestamp.
    """

    direction: str = Field(..., max_length=8, description="long or short")
    ticker: str = Field(..., min_length=3, max_length=32, description="BASE/QUOTE pair")
    duration: str = Field(..., max_length=8, description="Order lifetime, e.g. 60s")
    quantity: Decimal = Field(default=Decimal("0"), ge=0, description="Stake")
    display_duration: datetime | None = None


class OrderResponse(BaseModel):
    """A single order."""

    id: str
    user_id: str
    direction: str
    ticker: str
    entry_price: Decimal
    current_price: Decimal | None = None
    exit_price: Decimal | None = None
    duration: str
    display_duration: datetime | None = None
    percentage: int
    quantity: Decimal
    outcome: str
    amount: Decimal
    pnl: Decimal
    status: str
    settled_by: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            user_id=order.user_id,
            direction=order.direction.value,
            ticker=order.ticker,
            entry_price=order.entry_price,
            current_price=order.current_price,
            exit_price=order.exit_price,
            duration=order.duration,
            display_duration=order.display_duration,
            percentage=order.percentage,
            quantity=order.quantity,
            outcome=order.outcome.kind,
            amount=order.amount,
            pnl=order.pnl,
            status=order.status.value,
            settled_by=order.settled_by.value if order.settled_by else None,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class ActiveOrderResponse(OrderResponse):
    """An active order with its remaining lifetime."""

    time_remaining_seconds: int

    @classmethod
    def from_view(cls, view: ActiveOrderView) -> "ActiveOrderResponse":
        base = OrderResponse.from_order(view.order).model_dump()
        return cls(**base, time_remaining_seconds=view.time_remaining_seconds)


class OrderListResponse(BaseModel):
    """A list of orders."""

    orders: list[OrderResponse]


class ActiveOrderListResponse(BaseModel):
    """The caller's active orders."""

    orders: list[ActiveOrderResponse]


class OrderSummaryResponse(BaseModel):
    """Aggregate figures over the listed orders."""

    total: int
    active: int
    closed: int
    cancelled: int
    total_pnl: Decimal
    profitable: int
    loss: int
    average_pnl: Decimal

    @classmethod
    def from_summary(cls, summary: OrderSummary) -> "OrderSummaryResponse":
        return cls(
            total=summary.total,
            active=summary.active,
            closed=summary.closed,
            cancelled=summary.cancelled,
            total_pnl=summary.total_pnl,
            profitable=summary.profitable,
            loss=summary.loss,
            average_pnl=summary.average_pnl,
        )


class AdminOrderListResponse(BaseModel):
    """Admin order listing with its summary."""

    orders: list[OrderResponse]
    summary: OrderSummaryResponse


class AdminSettleRequest(BaseModel):
    """Request schema for an admin override."""

    action: Literal["profit", "loss"]


# ------------------------------------------------------------------
# Ledger
# ------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """One balance."""

    currency: str
    amount: Decimal
    network: str | None = None

    @classmethod
    def from_balance(cls, balance: Balance) -> "BalanceResponse":
        return cls(currency=balance.currency, amount=balance.amount, network=balance.network)


class BalanceListResponse(BaseModel):
    """Every balance held by the caller."""

    balances: list[BalanceResponse]


class TransactionResponse(BaseModel):
    """One journal entry."""

    id: str
    currency: str
    network: str
    amount: Decimal
    balance_after: Decimal
    type: str
    status: str
    reason: str | None = None
    from_currency: str | None = None
    to_currency: str | None = None
    created_at: datetime

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "TransactionResponse":
        return cls(
            id=tx.id,
            currency=tx.currency,
            network=tx.network,
            amount=tx.amount,
            balance_after=tx.balance_after,
            type=tx.type.value,
            status=tx.status.value,
            reason=tx.reason,
            from_currency=tx.from_currency,
            to_currency=tx.to_currency,
            created_at=tx.created_at,
        )


class TransactionListResponse(BaseModel):
    """Journal entries, newest first."""

    transactions: list[TransactionResponse]


class LedgerEntryResponse(BaseModel):
    """What a ledger operation did."""

    outcome: str
    balance: BalanceResponse
    transaction: TransactionResponse

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "LedgerEntryResponse":
        return cls(
            outcome=entry.outcome.value,
            balance=BalanceResponse.from_balance(entry.balance),
            transaction=TransactionResponse.from_transaction(entry.transaction),
        )


class AdjustBalanceRequest(BaseModel):
    """Request schema for an admin balance adjustment."""

    currency: str = Field(..., pattern=CURRENCY_PATTERN)
    amount: Decimal = Field(..., gt=0)
    operation: Literal["add", "subtract"]
    reason: str | None = Field(default=None, max_length=512)
    network: str | None = Field(default=None, max_length=32)


class AdminSettleResponse(BaseModel):
    """Result of an admin override."""

    order: OrderResponse
    ledger_entry: LedgerEntryResponse | None = None


class AdjustBalanceResponse(BaseModel):
    """Result of an admin balance adjustment."""

    user_id: str
    email: str
    entry: LedgerEntryResponse


class SwapRequest(BaseModel):
    """Request schema for a currency swap.

    The JSON keys are ``from`` and ``to``.
    """

    model_config = ConfigDict(populate_by_name=True)

    from_currency: str = Field(..., alias="from", pattern=CURRENCY_PATTERN)
    to_currency: str = Field(..., alias="to", pattern=CURRENCY_PATTERN)
    amount: Decimal = Field(..., gt=0)


class SwapResponse(BaseModel):
    """Result of a completed swap."""

    from_currency: str
    to_currency: str
    from_amount: Decimal
    to_amount: Decimal
    rate: Decimal
    price_source: str
    debit: LedgerEntryResponse
    credit: LedgerEntryResponse


# ------------------------------------------------------------------
# Prices
# ------------------------------------------------------------------


class PricePointResponse(BaseModel):
    price: Decimal
    timestamp: datetime


class PriceTrackerResponse(BaseModel):
    """Observed price cache for one ticker."""

    ticker: str
    current_price: Decimal
    last_updated: datetime
    history: list[PricePointResponse]

    @classmethod
    def from_tracker(cls, tracker: PriceTracker) -> "PriceTrackerResponse":
        return cls(
            ticker=tracker.ticker,
            current_price=tracker.current_price,
            last_updated=tracker.last_updated,
            history=[
                PricePointResponse(price=p.price, timestamp=p.timestamp)
                for p in tracker.history
            ],
        )


# ------------------------------------------------------------------
# Sweeps
# ------------------------------------------------------------------


class SweepReportResponse(BaseModel):
    """Outcome of one settlement sweep."""

    started_at: datetime
    finished_at: datetime | None = None
    duration_seconds: float
    skipped: bool
    orders_seen: int
    orders_settled: int
    orders_waiting: int
    orders_failed: int
    prices: dict[str, Decimal]
    failures: dict[str, str]

    @classmethod
    def from_report(cls, report: SweepReport) -> "SweepReportResponse":
        return cls(
            started_at=report.started_at,
            finished_at=report.finished_at,
            duration_seconds=report.duration_seconds,
            skipped=report.skipped,
            orders_seen=report.orders_seen,
            orders_settled=report.orders_settled,
            orders_waiting=report.orders_waiting,
            orders_failed=report.orders_failed,
            prices=dict(report.prices),
            failures=dict(report.failures),
        )


class SchedulerStatusResponse(BaseModel):
    """Scheduler state and recent sweep reports."""

    running: bool
    interval_seconds: int
    next_run_at: str | None = None
    recent: list[SweepReportResponse]


# ------------------------------------------------------------------
# Common
# ------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    database: str


class ErrorResponse(BaseModel):
    """Standard error response returned by all error handlers."""

    error: str
    detail: str | None = None
