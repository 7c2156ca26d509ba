"""
Tests for the trading application use cases.

Each use case runs over the real SQL adapters on an in-memory
database, with fake price sources standing in for the network.
"""

from decimal import Decimal

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import OperationalError

from app.application.trading.admin_list_orders import AdminListOrdersUseCase
from app.application.trading.adjust_balance import AdjustBalanceUseCase
from app.application.trading.close_order import CloseOrderUseCase
from app.application.trading.dtos import (
    AdjustBalanceCommand,
    CloseOrderCommand,
    OrderSearchQuery,
    SubmitOrderCommand,
    SwapCommand,
)
from app.application.trading.get_active_orders import GetActiveOrdersUseCase
from app.application.trading.get_price_tracker import GetPriceTrackerUseCase
from app.application.trading.submit_order import SubmitOrderUseCase
from app.application.trading.swap_currency import SwapCurrencyUseCase
from app.domain.trading.entities import (
    LedgerOperation,
    LedgerOutcome,
    OrderStatus,
    SettledBy,
    TransactionStatus,
    TransactionType,
    utc_now,
)
from app.domain.trading.errors import (
    InsufficientFundsError,
    InvalidDurationError,
    InvalidOrderError,
    InvalidSwapError,
    InvalidTickerError,
    OrderNotFoundError,
    PriceSourceError,
    PriceTrackerNotFoundError,
    PriceUnavailableError,
    UserNotFoundError,
)
from app.domain.trading.ports import PriceSource
from app.domain.trading.price_resolver import PriceResolver
from app.infrastructure.trading.tables import users
from app.infrastructure.trading.user_directory import UserDirectoryAdapter


class TestSubmitOrder:
    """Tests for SubmitOrderUseCase."""

    @pytest.fixture
    def use_case(self, order_repo, ledger_repo, resolver):
        return SubmitOrderUseCase(order_repo, ledger_repo, resolver)

    def test_opens_active_order_at_resolved_price(self, use_case, order_repo, fund) -> None:
        fund("user-1", "100")
        order = use_case.execute(
            SubmitOrderCommand(
                user_id="user-1",
                direction="long",
                ticker="btc/usdt",
                duration="120s",
                quantity=Decimal("5"),
            )
        )

        assert order.status is OrderStatus.ACTIVE
        assert order.ticker == "BTC/USDT"
        assert order.entry_price == Decimal("51000")
        assert order.percentage == 120
        assert order_repo.get(order.id) is not None

    def test_stake_is_not_escrowed(self, use_case, ledger_repo, fund) -> None:
        fund("user-1", "100")
        use_case.execute(
            SubmitOrderCommand("user-1", "short", "BTC/USDT", "60s", Decimal("50"))
        )
        assert ledger_repo.get_balance("user-1", "USDT").amount == Decimal("100")

    def test_requires_positive_settlement_balance(self, use_case) -> None:
        with pytest.raises(InsufficientFundsError) as exc_info:
            use_case.execute(SubmitOrderCommand("user-1", "long", "BTC/USDT", "60s"))
        assert exc_info.value.currency == "USDT"

    @pytest.mark.parametrize(
        "direction,ticker,duration,error",
        [
            ("up", "BTC/USDT", "60s", InvalidOrderError),
            ("long", "BTCUSDT", "60s", InvalidTickerError),
            ("long", "BTC/USDT", "90s", InvalidDurationError),
        ],
    )
    def test_rejects_invalid_submissions(
        self, use_case, order_repo, fund, direction, ticker, duration, error
    ) -> None:
        fund("user-1", "100")
        with pytest.raises(error):
            use_case.execute(SubmitOrderCommand("user-1", direction, ticker, duration))
        assert order_repo.list_for_user("user-1") == []

    def test_negative_quantity_rejected(self, use_case, fund) -> None:
        fund("user-1", "100")
        with pytest.raises(InvalidOrderError):
            use_case.execute(
                SubmitOrderCommand("user-1", "long", "BTC/USDT", "60s", Decimal("-1"))
            )

    def test_unpriceable_ticker_rejected(self, use_case, fund) -> None:
        fund("user-1", "100")
        with pytest.raises(PriceUnavailableError):
            use_case.execute(SubmitOrderCommand("user-1", "long", "FOO/BAR", "60s"))


class TestActiveOrders:
    """Tests for GetActiveOrdersUseCase and in-line expiry."""

    def test_elapsed_orders_are_settled_on_read(
        self, order_repo, settlement_engine, ledger_repo, fund, place_order
    ) -> None:
        fund("user-1", "100")
        elapsed = place_order(quantity="10", duration="30s", age_seconds=45)
        live = place_order(quantity="10", duration="300s")

        views = GetActiveOrdersUseCase(order_repo, settlement_engine).execute("user-1")

        assert [v.order.id for v in views] == [live.id]
        assert 0 < views[0].time_remaining_seconds <= 300
        assert order_repo.get(elapsed.id).settled_by is SettledBy.EXPIRY
        assert ledger_repo.get_balance("user-1", "USDT").amount == Decimal("90")

    def test_elapsed_order_without_balance_stays_active(
        self, order_repo, settlement_engine, place_order
    ) -> None:
        place_order(duration="30s", age_seconds=45)
        views = GetActiveOrdersUseCase(order_repo, settlement_engine).execute("user-1")
        assert len(views) == 1
        assert views[0].time_remaining_seconds == 0


class TestCloseOrder:
    """Tests for CloseOrderUseCase."""

    @pytest.fixture
    def use_case(self, order_repo, resolver, settlement_engine):
        return CloseOrderUseCase(order_repo, resolver, settlement_engine)

    def test_owner_closes_at_current_price(self, use_case, place_order) -> None:
        order = place_order(direction="short", entry_price="50000")

        closed = use_case.execute(CloseOrderCommand("user-1", order.id))

        assert closed.status is OrderStatus.CLOSED
        assert closed.exit_price == Decimal("51000")
        assert closed.pnl == Decimal("-2")

    def test_other_users_order_is_not_found(self, use_case, place_order) -> None:
        order = place_order(user_id="user-1")
        with pytest.raises(OrderNotFoundError):
            use_case.execute(CloseOrderCommand("user-2", order.id))

    def test_closed_order_is_not_found(self, use_case, place_order) -> None:
        order = place_order()
        use_case.execute(CloseOrderCommand("user-1", order.id))
        with pytest.raises(OrderNotFoundError):
            use_case.execute(CloseOrderCommand("user-1", order.id))


class WithdrawingPriceSource(PriceSource):
    """Quotes fixed prices, and drains a balance while doing so."""

    name = "withdrawing"

    def __init__(self, prices, ledger, user_id, currency, amount):
        self.prices = {k: Decimal(v) for k, v in prices.items()}
        self._withdraw = (ledger, user_id, currency, Decimal(amount))

    def fetch_price(self, symbol: str) -> Decimal:
        ledger, user_id, currency, amount = self._withdraw
        ledger.apply(
            user_id=user_id,
            currency=currency,
            amount=amount,
            operation=LedgerOperation.SUBTRACT,
            type=TransactionType.WITHDRAW,
            status=TransactionStatus.COMPLETED,
        )
        if symbol not in self.prices:
            raise PriceSourceError(self.name, symbol, "not quoted")
        return self.prices[symbol]


class TestSwapCurrency:
    """Tests for SwapCurrencyUseCase."""

    @pytest.fixture
    def swap(self, ledger, resolver, unit_of_work):
        """Build the use case, over the default resolver unless one is given."""

        def build(custom_resolver=None):
            return SwapCurrencyUseCase(ledger, custom_resolver or resolver, unit_of_work)

        return build

    def test_direct_pair(self, swap, ledger_repo, fund) -> None:
        fund("user-1", "1", currency="ETH")

        result = swap().execute(SwapCommand("user-1", "eth", "usdt", Decimal("0.5")))

        assert result.rate == Decimal("2500")
        assert result.to_amount == Decimal("1250")
        assert result.credit.outcome is LedgerOutcome.CREATED
        assert ledger_repo.get_balance("user-1", "ETH").amount == Decimal("0.5")
        assert ledger_repo.get_balance("user-1", "USDT").amount == Decimal("1250")

    def test_reverse_pair_uses_reciprocal(self, swap, ledger_repo, make_source, fund) -> None:
        """BTCETH is not quoted live, ETHBTC is: 0.1 BTC at 0.05 gives 2 ETH."""
        resolver = PriceResolver([make_source({"ETHBTC": "0.05"})])
        fund("user-1", "1", currency="BTC")

        result = swap(resolver).execute(SwapCommand("user-1", "BTC", "ETH", Decimal("0.1")))

        assert result.to_amount == Decimal("2")
        assert ledger_repo.get_balance("user-1", "BTC").amount == Decimal("0.9")
        assert ledger_repo.get_balance("user-1", "ETH").amount == Decimal("2")
        swaps = ledger_repo.list_transactions("user-1", type=TransactionType.SWAP)
        assert len(swaps) == 2
        assert {tx.to_currency for tx in swaps} == {"ETH"}

    def test_static_table_used_when_nothing_is_live(self, swap, make_source, fund) -> None:
        fund("user-1", "1", currency="BTC")
        result = swap(PriceResolver([make_source({})])).execute(
            SwapCommand("user-1", "BTC", "USDT", Decimal("1"))
        )
        assert result.rate == Decimal("45000")

    @pytest.mark.parametrize(
        "from_currency,to_currency,amount",
        [("", "USDT", "1"), ("USDT", "usdt", "1"), ("USDT", "BTC", "0")],
    )
    def test_invalid_parameters(self, swap, from_currency, to_currency, amount) -> None:
        with pytest.raises(InvalidSwapError):
            swap().execute(SwapCommand("user-1", from_currency, to_currency, Decimal(amount)))

    def test_insufficient_funds_moves_nothing(self, swap, ledger_repo, fund) -> None:
        fund("user-1", "10")
        with pytest.raises(InsufficientFundsError):
            swap().execute(SwapCommand("user-1", "USDT", "BTC", Decimal("11")))
        assert ledger_repo.get_balance("user-1", "USDT").amount == Decimal("10")
        assert ledger_repo.get_balance("user-1", "BTC") is None

    def test_balance_drained_during_rate_lookup_credits_nothing(
        self, swap, ledger, ledger_repo, fund
    ) -> None:
        """A withdrawal landing after the balance check rejects the swap."""
        fund("user-1", "1", currency="BTC")
        source = WithdrawingPriceSource({"BTCETH": "20"}, ledger, "user-1", "BTC", "1")

        with pytest.raises(InsufficientFundsError) as exc_info:
            swap(PriceResolver([source])).execute(
                SwapCommand("user-1", "BTC", "ETH", Decimal("1"))
            )

        assert exc_info.value.currency == "BTC"
        assert ledger_repo.get_balance("user-1", "BTC").amount == Decimal("0")
        assert ledger_repo.get_balance("user-1", "ETH") is None
        assert ledger_repo.list_transactions("user-1", type=TransactionType.SWAP) == []

    def test_failed_credit_rolls_back_debit(
        self, swap, ledger_repo, fund, monkeypatch
    ) -> None:
        fund("user-1", "1", currency="ETH")
        debit_only = ledger_repo.apply

        def fail_on_credit(**kwargs):
            if kwargs["operation"] is LedgerOperation.ADD:
                raise OperationalError("UPDATE balances", {}, Exception("disk I/O error"))
            return debit_only(**kwargs)

        monkeypatch.setattr(ledger_repo, "apply", fail_on_credit)
        with pytest.raises(OperationalError):
            swap().execute(SwapCommand("user-1", "ETH", "USDT", Decimal("0.5")))
        monkeypatch.undo()

        assert ledger_repo.get_balance("user-1", "ETH").amount == Decimal("1")
        assert ledger_repo.get_balance("user-1", "USDT") is None
        assert ledger_repo.list_transactions("user-1", type=TransactionType.SWAP) == []

    def test_unknown_pair_raises(self, swap, make_source, fund) -> None:
        fund("user-1", "10", currency="FOO")
        with pytest.raises(PriceUnavailableError):
            swap(PriceResolver([make_source({})])).execute(
                SwapCommand("user-1", "FOO", "BAR", Decimal("1"))
            )


class TestAdjustBalance:
    """Tests for AdjustBalanceUseCase."""

    @pytest.fixture
    def use_case(self, engine, ledger):
        with engine.begin() as conn:
            conn.execute(insert(users).values(id="user-1", email="Trader@Example.com"))
        return AdjustBalanceUseCase(UserDirectoryAdapter(engine), ledger)

    def test_adjust_by_email_case_insensitive(self, use_case, ledger_repo) -> None:
        result = use_case.execute(
            AdjustBalanceCommand(
                user_ref="trader@example.com",
                currency="usdt",
                amount=Decimal("25"),
                operation="add",
                reason="welcome bonus",
            )
        )

        assert result.user_id == "user-1"
        assert result.entry.transaction.type is TransactionType.ADMIN_DEPOSIT
        assert result.entry.transaction.reason == "welcome bonus"
        assert ledger_repo.get_balance("user-1", "USDT").amount == Decimal("25")

    def test_adjust_by_id_subtract_clamps(self, use_case, fund) -> None:
        fund("user-1", "5")
        result = use_case.execute(
            AdjustBalanceCommand("user-1", "USDT", Decimal("8"), "subtract")
        )
        assert result.entry.outcome is LedgerOutcome.CLAMPED

    def test_unknown_user(self, use_case) -> None:
        with pytest.raises(UserNotFoundError):
            use_case.execute(
                AdjustBalanceCommand("ghost@example.com", "USDT", Decimal("1"), "add")
            )


class TestAdminListOrders:
    """Tests for AdminListOrdersUseCase."""

    def test_filters_and_summary(
        self, order_repo, settlement_engine, fund, place_order
    ) -> None:
        fund("user-1", "100")
        fund("user-2", "100")
        won = place_order(user_id="user-1", quantity="10")
        lost = place_order(user_id="user-2", ticker="ETH/USDT", quantity="10")
        place_order(user_id="user-2", duration="300s")
        settlement_engine.settle_manual(won.id, "profit")
        settlement_engine.settle_manual(lost.id, "loss")

        use_case = AdminListOrdersUseCase(order_repo, settlement_engine)
        result = use_case.execute(OrderSearchQuery())

        assert result.summary.total == 3
        assert result.summary.active == 1
        assert result.summary.closed == 2
        assert result.summary.profitable == 1
        assert result.summary.loss == 1
        assert result.summary.total_pnl == Decimal("-4")

        eth = use_case.execute(OrderSearchQuery(ticker="eth"))
        assert [o.id for o in eth.orders] == [lost.id]

        closed = use_case.execute(OrderSearchQuery(status=OrderStatus.CLOSED))
        assert {o.id for o in closed.orders} == {won.id, lost.id}

    def test_elapsed_orders_settled_before_listing(
        self, order_repo, settlement_engine, fund, place_order
    ) -> None:
        fund("user-1", "100")
        place_order(duration="30s", age_seconds=60)
        result = AdminListOrdersUseCase(order_repo, settlement_engine).execute(
            OrderSearchQuery(status=OrderStatus.ACTIVE)
        )
        assert result.orders == []
        assert result.summary.average_pnl == Decimal("0")


class TestPriceTrackerLookup:
    """Tests for GetPriceTrackerUseCase."""

    def test_returns_observed_prices(self, tracker_repo) -> None:
        tracker_repo.record("BTC/USDT", Decimal("50000"), utc_now())
        tracker = GetPriceTrackerUseCase(tracker_repo).execute("btc", "usdt")
        assert tracker.current_price == Decimal("50000")

    def test_never_observed(self, tracker_repo) -> None:
        with pytest.raises(PriceTrackerNotFoundError):
            GetPriceTrackerUseCase(tracker_repo).execute("BTC", "USDT")
