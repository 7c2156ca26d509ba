"""
Port interfaces (ABCs) for the trading bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import ContextManager, Optional

from app.domain.trading.entities import (
    Balance,
    LedgerEntry,
    LedgerOperation,
    Order,
    OrderSettlement,
    OrderStatus,
    PriceTier,
    PriceTracker,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)


class PriceSource(ABC):
    """Port for one upstream price source (one tier of the fallback chain).

    Implementations must raise PriceSourceError for every failure,
    including transport errors and malformed responses.
    """

    name: str = "price-source"
    tier: PriceTier = PriceTier.PRIMARY

    @abstractmethod
    def fetch_price(self, symbol: str) -> Decimal:
        """Return the current price for a normalized symbol such as BTCUSDT."""
        raise NotImplementedError


class BalanceLedgerRepository(ABC):
    """Port for the balance + transaction journal store.

    ``apply`` is the only way to mutate a balance. It must update the
    balance with a storage-level atomic increment/decrement and write
    the journal entry in the same storage transaction, after the
    balance write.
    """

    @abstractmethod
    def apply(
        self,
        user_id: str,
        currency: str,
        amount: Decimal,
        operation: LedgerOperation,
        type: TransactionType,
        status: TransactionStatus,
        network: Optional[str] = None,
        reason: Optional[str] = None,
        from_currency: Optional[str] = None,
        to_currency: Optional[str] = None,
        clamp: bool = True,
    ) -> LedgerEntry:
        """Mutate one balance and append one journal entry.

        With ``clamp`` off a subtraction the balance cannot cover raises
        InsufficientFundsError and writes nothing, instead of flooring
        the balance at zero.
        """
        raise NotImplementedError

    @abstractmethod
    def get_balance(self, user_id: str, currency: str) -> Optional[Balance]:
        """Return the balance for (user, currency), or None if never created."""
        raise NotImplementedError

    @abstractmethod
    def list_balances(self, user_id: str) -> list[Balance]:
        """Return every balance held by a user."""
        raise NotImplementedError

    @abstractmethod
    def list_transactions(
        self, user_id: str, type: Optional[TransactionType] = None
    ) -> list[Transaction]:
        """Return a user's journal entries, newest first."""
        raise NotImplementedError


class OrderRepository(ABC):
    """Port for persisting and retrieving orders."""

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a newly submitted order."""
        raise NotImplementedError

    @abstractmethod
    def get(self, order_id: str) -> Optional[Order]:
        """Return an order by id, or None."""
        raise NotImplementedError

    @abstractmethod
    def list_active(self) -> list[Order]:
        """Return every order currently in ACTIVE status."""
        raise NotImplementedError

    @abstractmethod
    def list_for_user(
        self, user_id: str, status: Optional[OrderStatus] = None
    ) -> list[Order]:
        """Return a user's orders, newest first, optionally by status."""
        raise NotImplementedError

    @abstractmethod
    def search(
        self,
        status: Optional[OrderStatus] = None,
        direction: Optional[str] = None,
        ticker: Optional[str] = None,
        outcome: Optional[str] = None,
        user_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        min_pnl: Optional[Decimal] = None,
        max_pnl: Optional[Decimal] = None,
        min_percentage: Optional[int] = None,
        max_percentage: Optional[int] = None,
    ) -> list[Order]:
        """Return orders matching every given filter, newest first."""
        raise NotImplementedError

    @abstractmethod
    def settle(
        self,
        order_id: str,
        settlement: OrderSettlement,
        from_statuses: tuple[OrderStatus, ...],
    ) -> bool:
        """Apply a terminal transition if the order is still in ``from_statuses``.

        The check and the write must be a single conditional update so that
        exactly one concurrent caller wins.

        Returns:
            True if this call performed the transition, False if the order
            had already left every allowed source state.
        """
        raise NotImplementedError


class PriceTrackerRepository(ABC):
    """Port for the observed-price cache."""

    @abstractmethod
    def record(self, ticker: str, price: Decimal, at: datetime) -> None:
        """Store the latest price and append it to the bounded history."""
        raise NotImplementedError

    @abstractmethod
    def get(self, ticker: str) -> Optional[PriceTracker]:
        """Return the tracker for a ticker, or None."""
        raise NotImplementedError


class UserDirectory(ABC):
    """Port for resolving users owned by the external auth system."""

    @abstractmethod
    def find(self, user_ref: str) -> Optional[User]:
        """Return the user whose id or email equals ``user_ref``."""
        raise NotImplementedError


class UnitOfWork(ABC):
    """Port for grouping repository writes into one atomic unit.

    Repository calls made inside ``atomic()`` share its transaction.
    If the block raises, every write made inside it is rolled back.
    """

    @abstractmethod
    def atomic(self) -> ContextManager[None]:
        """Return a context manager scoping one unit of work."""
        raise NotImplementedError
