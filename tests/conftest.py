"""
Shared fixtures for the test suite.

Environment is pinned before any application module is imported so
that the settings object sees an in-memory database, a known admin
key, no scheduler and no rate limiting.
"""

import os

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import timedelta
from decimal import Decimal

import pytest

from app.domain.trading.entities import (
    LedgerOperation,
    Order,
    PriceTier,
    TransactionStatus,
    TransactionType,
    utc_now,
)
from app.domain.trading.errors import PriceSourceError
from app.domain.trading.ledger import BalanceLedger
from app.domain.trading.order_rules import parse_direction, payout_percentage
from app.domain.trading.ports import PriceSource
from app.domain.trading.price_resolver import PriceResolver
from app.domain.trading.settlement import SettlementEngine
from app.infrastructure.database import build_engine
from app.infrastructure.trading.balance_ledger_repository import (
    BalanceLedgerRepositoryAdapter,
)
from app.infrastructure.trading.order_repository import OrderRepositoryAdapter
from app.infrastructure.trading.price_tracker_repository import (
    PriceTrackerRepositoryAdapter,
)
from app.infrastructure.trading.unit_of_work import SqlUnitOfWork


class FakePriceSource(PriceSource):
    """In-memory price source that records every lookup."""

    def __init__(self, prices=None, name="fake", tier=PriceTier.PRIMARY):
        self.prices = {k: Decimal(str(v)) for k, v in (prices or {}).items()}
        self.name = name
        self.tier = tier
        self.calls: list[str] = []

    def fetch_price(self, symbol: str) -> Decimal:
        self.calls.append(symbol)
        if symbol not in self.prices:
            raise PriceSourceError(self.name, symbol, "not quoted")
        return self.prices[symbol]


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    db = build_engine("sqlite:///:memory:")
    yield db
    db.dispose()


@pytest.fixture
def ledger_repo(engine):
    return BalanceLedgerRepositoryAdapter(engine)


@pytest.fixture
def ledger(ledger_repo):
    return BalanceLedger(ledger_repo)


@pytest.fixture
def order_repo(engine):
    return OrderRepositoryAdapter(engine)


@pytest.fixture
def tracker_repo(engine):
    return PriceTrackerRepositoryAdapter(engine, history_size=100)


@pytest.fixture
def unit_of_work(engine):
    return SqlUnitOfWork(engine)


@pytest.fixture
def settlement_engine(order_repo, ledger, unit_of_work):
    return SettlementEngine(orders=order_repo, ledger=ledger, unit_of_work=unit_of_work)


@pytest.fixture
def make_source():
    """Factory for FakePriceSource instances."""
    return FakePriceSource


@pytest.fixture
def price_source():
    return FakePriceSource(
        {"BTCUSDT": "51000", "ETHUSDT": "2500", "ETHBTC": "0.05"}, name="primary"
    )


@pytest.fixture
def resolver(price_source):
    return PriceResolver([price_source])


@pytest.fixture
def fund(ledger):
    """Credit a user's balance through the ledger."""

    def _fund(user_id: str, amount: str, currency: str = "USDT"):
        return ledger.apply(
            user_id=user_id,
            currency=currency,
            amount=Decimal(amount),
            operation=LedgerOperation.ADD,
            type=TransactionType.DEPOSIT,
            status=TransactionStatus.COMPLETED,
        )

    return _fund


@pytest.fixture
def place_order(order_repo):
    """Persist an order directly, optionally already elapsed."""

    def _place(
        user_id: str = "user-1",
        direction: str = "long",
        ticker: str = "BTC/USDT",
        entry_price: str = "50000",
        duration: str = "60s",
        quantity: str = "10",
        age_seconds: int = 0,
    ) -> Order:
        created = utc_now() - timedelta(seconds=age_seconds)
        order = Order(
            user_id=user_id,
            direction=parse_direction(direction),
            ticker=ticker,
            entry_price=Decimal(entry_price),
            current_price=Decimal(entry_price),
            duration=duration,
            percentage=payout_percentage(duration),
            quantity=Decimal(quantity),
            created_at=created,
            updated_at=created,
        )
        order_repo.add(order)
        return order

    return _place
