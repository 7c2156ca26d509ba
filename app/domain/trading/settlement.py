"""
Domain service: order settlement.

Decides the outcome of a timed order and drives the ledger and the
order's terminal transition. Four paths lead here:

    - sweep:  price-driven, nudges the balance by a fraction of itself
    - expiry: in-line on read, forfeits the stake
    - user:   owner closes early, records percentage PnL only
    - admin:  explicit profit/loss override, no price lookup

Every path claims the order first with a conditional transition.
Only the winner of that claim touches the ledger, so a settlement's
ledger effect happens at most once per order. The claim and the ledger
move share one unit of work: if the ledger write fails the order is
still open afterwards and a later sweep can settle it.
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from app.domain.trading.entities import (
    LedgerEntry,
    LedgerOperation,
    Loss,
    Order,
    OrderSettlement,
    OrderStatus,
    Profit,
    SettledBy,
    SettlementOutcome,
    TransactionStatus,
    TransactionType,
    sources_for,
    utc_now,
)
from app.domain.trading.errors import (
    BalanceNotFoundError,
    InvalidSettlementActionError,
    OrderNotFoundError,
)
from app.domain.trading.ledger import BalanceLedger
from app.domain.trading.order_rules import (
    admin_profit_amount,
    close_pnl_percent,
    is_profitable,
)
from app.domain.trading.ports import OrderRepository, UnitOfWork

logger = logging.getLogger(__name__)

DEFAULT_ADJUSTMENT_RATE = Decimal("0.001")

# Source states each path may settle from.
AUTOMATIC_SOURCES = (OrderStatus.ACTIVE,)
ADMIN_SOURCES = sources_for(OrderStatus.CLOSED)


@dataclass(frozen=True)
class SettlementResult:
    """What a successful settlement did."""

    order: Order
    outcome: SettlementOutcome
    ledger_entry: Optional[LedgerEntry] = None


class SettlementEngine:
    """Applies settlement decisions to orders and the balance ledger."""

    def __init__(
        self,
        orders: OrderRepository,
        ledger: BalanceLedger,
        unit_of_work: UnitOfWork,
        settlement_currency: str = "USDT",
        adjustment_rate: Decimal = DEFAULT_ADJUSTMENT_RATE,
    ) -> None:
        """Initialize the settlement engine.

        Args:
            orders: Order store holding the terminal-transition guard.
            ledger: The balance ledger, the only way funds move.
            unit_of_work: Scope shared by the order claim and its ledger move.
            settlement_currency: Currency every order settles in.
            adjustment_rate: Fraction of the live balance moved per sweep
                settlement (0.001 = 0.1%).
        """
        self._orders = orders
        self._ledger = ledger
        self._unit_of_work = unit_of_work
        self._currency = settlement_currency
        self._adjustment_rate = adjustment_rate

    @property
    def settlement_currency(self) -> str:
        return self._currency

    # ------------------------------------------------------------------
    # Sweep path
    # ------------------------------------------------------------------

    def settle_on_price(
        self, order: Order, current_price: Decimal
    ) -> Optional[SettlementResult]:
        """Settle an order against a freshly resolved price.

        The adjustment is a fixed fraction of the user's settlement
        balance at evaluation time, not of the stake.

        Returns:
            The settlement, or None if another path already closed the order.

        Raises:
            BalanceNotFoundError: The user holds no settlement balance. The
                order is left untouched.
        """
        with self._unit_of_work.atomic():
            balance = self._ledger.repository.get_balance(order.user_id, self._currency)
            if balance is None:
                raise BalanceNotFoundError(order.user_id, self._currency)

            adjustment = balance.amount * self._adjustment_rate
            profitable = is_profitable(order.direction, order.entry_price, current_price)
            outcome: SettlementOutcome = (
                Profit(adjustment) if profitable else Loss(adjustment)
            )
            pnl = adjustment if profitable else -adjustment

            settled = self._claim(
                order,
                OrderSettlement(
                    status=OrderStatus.CLOSED,
                    outcome=outcome,
                    pnl=pnl,
                    settled_by=SettledBy.SWEEP,
                    current_price=current_price,
                ),
                AUTOMATIC_SOURCES,
            )
            if settled is None:
                return None

            entry = None
            if adjustment > 0:
                entry = self._ledger.apply(
                    user_id=order.user_id,
                    currency=self._currency,
                    amount=adjustment,
                    operation=(
                        LedgerOperation.ADD if profitable else LedgerOperation.SUBTRACT
                    ),
                    type=TransactionType.TRADE_SETTLEMENT,
                    status=TransactionStatus.COMPLETED,
                    reason=f"order {order.id} {outcome.kind} at {current_price}",
                )
        logger.info(
            "Sweep settled order %s (%s %s): entry=%s current=%s pnl=%s",
            order.id,
            order.direction.value,
            order.ticker,
            order.entry_price,
            current_price,
            pnl,
        )
        return SettlementResult(order=settled, outcome=outcome, ledger_entry=entry)

    # ------------------------------------------------------------------
    # In-line expiry path
    # ------------------------------------------------------------------

    def settle_expired(self, order: Order) -> Optional[SettlementResult]:
        """Close an elapsed order as a loss of its stake.

        Returns:
            The settlement, or None if the user has no settlement balance
            (the order stays active) or another path closed it first.
        """
        stake = order.quantity
        outcome = Loss(stake)
        with self._unit_of_work.atomic():
            balance = self._ledger.repository.get_balance(order.user_id, self._currency)
            if balance is None:
                logger.warning(
                    "Expired order %s left active: no %s balance for user %s",
                    order.id,
                    self._currency,
                    order.user_id,
                )
                return None

            settled = self._claim(
                order,
                OrderSettlement(
                    status=OrderStatus.CLOSED,
                    outcome=outcome,
                    pnl=-stake,
                    settled_by=SettledBy.EXPIRY,
                ),
                AUTOMATIC_SOURCES,
            )
            if settled is None:
                return None

            entry = None
            if stake > 0:
                entry = self._ledger.apply(
                    user_id=order.user_id,
                    currency=self._currency,
                    amount=stake,
                    operation=LedgerOperation.SUBTRACT,
                    type=TransactionType.TRADE_SETTLEMENT,
                    status=TransactionStatus.COMPLETED,
                    reason=f"order {order.id} expired",
                )
        logger.info("Expired order %s closed with loss of stake %s", order.id, stake)
        return SettlementResult(order=settled, outcome=outcome, ledger_entry=entry)

    # ------------------------------------------------------------------
    # User path
    # ------------------------------------------------------------------

    def close_by_user(self, order: Order, exit_price: Decimal) -> SettlementResult:
        """Close an order at the owner's request.

        Records signed percentage PnL and the exit price. The ledger is
        not moved on this path, unlike the sweep and expiry paths.

        Raises:
            OrderNotFoundError: The order was closed by another path first.
        """
        pnl = close_pnl_percent(order.direction, order.entry_price, exit_price)
        outcome: SettlementOutcome = Profit(pnl) if pnl > 0 else Loss(-pnl)
        settled = self._claim(
            order,
            OrderSettlement(
                status=OrderStatus.CLOSED,
                outcome=outcome,
                pnl=pnl,
                settled_by=SettledBy.USER,
                current_price=exit_price,
                exit_price=exit_price,
            ),
            AUTOMATIC_SOURCES,
        )
        if settled is None:
            raise OrderNotFoundError(order.id)
        logger.info("User closed order %s at %s, pnl=%s%%", order.id, exit_price, pnl)
        return SettlementResult(order=settled, outcome=outcome)

    # ------------------------------------------------------------------
    # Admin path
    # ------------------------------------------------------------------

    def settle_manual(self, order_id: str, action: str) -> SettlementResult:
        """Settle an order with an explicit admin-chosen outcome.

        Loss debits the stake; profit credits stake x payout percentage.
        Elapsed time and live prices are ignored.

        Raises:
            InvalidSettlementActionError: ``action`` is not profit or loss.
            OrderNotFoundError: Unknown order, or not active/pending_profit.
            BalanceNotFoundError: The owner has no settlement balance.
        """
        if action not in ("profit", "loss"):
            raise InvalidSettlementActionError(action)

        order = self._orders.get(order_id)
        if order is None or order.status not in ADMIN_SOURCES:
            raise OrderNotFoundError(order_id)

        if action == "profit":
            amount = admin_profit_amount(order.quantity, order.percentage)
            outcome: SettlementOutcome = Profit(amount)
            pnl = amount
            operation = LedgerOperation.ADD
        else:
            amount = order.quantity
            outcome = Loss(amount)
            pnl = -amount
            operation = LedgerOperation.SUBTRACT

        with self._unit_of_work.atomic():
            if self._ledger.repository.get_balance(order.user_id, self._currency) is None:
                raise BalanceNotFoundError(order.user_id, self._currency)

            settled = self._claim(
                order,
                OrderSettlement(
                    status=OrderStatus.CLOSED,
                    outcome=outcome,
                    pnl=pnl,
                    settled_by=SettledBy.ADMIN,
                ),
                ADMIN_SOURCES,
            )
            if settled is None:
                raise OrderNotFoundError(order_id)

            entry = None
            if amount > 0:
                entry = self._ledger.apply(
                    user_id=order.user_id,
                    currency=self._currency,
                    amount=amount,
                    operation=operation,
                    type=TransactionType.TRADE_SETTLEMENT,
                    status=TransactionStatus.COMPLETED,
                    reason=f"order {order.id} admin {action}",
                )
        logger.info(
            "Admin settled order %s as %s (percentage=%s, amount=%s)",
            order.id,
            action,
            order.percentage,
            amount,
        )
        return SettlementResult(order=settled, outcome=outcome, ledger_entry=entry)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _claim(
        self,
        order: Order,
        settlement: OrderSettlement,
        sources: tuple[OrderStatus, ...],
    ) -> Optional[Order]:
        """Win the order's single terminal transition, or return None."""
        if order.status not in sources:
            logger.info(
                "Order %s already %s, settlement skipped", order.id, order.status.value
            )
            return None

        if not self._orders.settle(order.id, settlement, sources):
            logger.info("Order %s was settled concurrently, skipping", order.id)
            return None

        return replace(
            order,
            status=settlement.status,
            outcome=settlement.outcome,
            pnl=settlement.pnl,
            settled_by=settlement.settled_by,
            current_price=settlement.current_price or order.current_price,
            exit_price=settlement.exit_price or order.exit_price,
            updated_at=utc_now(),
        )
