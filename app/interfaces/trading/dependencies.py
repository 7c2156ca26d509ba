"""
Dependency injection for the trading bounded context.

Provides FastAPI dependency functions that wire infrastructure
adapters into use cases via constructor injection.
These are the composition root for the trading context.

Process-wide singletons (engine, price resolver, sweep guard,
scheduler) are cached; use cases are cheap and built per request.
"""

from functools import lru_cache

import httpx
from fastapi import Depends
from sqlalchemy.engine import Engine

from app.application.trading.adjust_balance import AdjustBalanceUseCase
from app.application.trading.admin_list_orders import AdminListOrdersUseCase
from app.application.trading.admin_settle_order import AdminSettleOrderUseCase
from app.application.trading.close_order import CloseOrderUseCase
from app.application.trading.get_active_orders import GetActiveOrdersUseCase
from app.application.trading.get_balances import GetBalancesUseCase
from app.application.trading.get_order_history import GetOrderHistoryUseCase
from app.application.trading.get_price_tracker import GetPriceTrackerUseCase
from app.application.trading.get_transactions import GetTransactionsUseCase
from app.application.trading.run_settlement_sweep import RunSettlementSweepUseCase
from app.application.trading.submit_order import SubmitOrderUseCase
from app.application.trading.swap_currency import SwapCurrencyUseCase
from app.application.trading.sweep_guard import SweepGuard
from app.core.config import settings
from app.domain.trading.ledger import BalanceLedger
from app.domain.trading.price_resolver import PriceResolver
from app.domain.trading.settlement import SettlementEngine
from app.infrastructure.database import build_engine
from app.infrastructure.trading.balance_ledger_repository import (
    BalanceLedgerRepositoryAdapter,
)
from app.infrastructure.trading.binance_price_source import (
    BROWSER_USER_AGENT,
    build_binance_sources,
)
from app.infrastructure.trading.coingecko_price_source import (
    CoinGeckoPriceSourceAdapter,
)
from app.infrastructure.trading.order_repository import OrderRepositoryAdapter
from app.infrastructure.trading.price_tracker_repository import (
    PriceTrackerRepositoryAdapter,
)
from app.infrastructure.trading.settlement_scheduler import SettlementScheduler
from app.infrastructure.trading.unit_of_work import SqlUnitOfWork
from app.infrastructure.trading.user_directory import UserDirectoryAdapter


# ------------------------------------------------------------------
# Process-wide singletons
# ------------------------------------------------------------------


@lru_cache
def get_engine() -> Engine:
    """Build the SQLAlchemy engine from application settings."""
    return build_engine(settings.database_url)


@lru_cache
def get_price_resolver() -> PriceResolver:
    """Build the tiered resolver: primary, mirrors, then aggregator."""
    client = httpx.Client(
        timeout=settings.price_timeout_seconds,
        headers={"User-Agent": BROWSER_USER_AGENT},
    )
    sources = [
        *build_binance_sources(
            settings.price_endpoints,
            timeout=settings.price_timeout_seconds,
            client=client,
        ),
        CoinGeckoPriceSourceAdapter(
            settings.aggregator_url,
            timeout=settings.price_timeout_seconds,
            client=client,
        ),
    ]
    return PriceResolver(sources)


@lru_cache
def get_sweep_guard() -> SweepGuard:
    """The one sweep guard shared by scheduled and manual sweeps."""
    return SweepGuard(lease_seconds=settings.sweep_lease_seconds)


@lru_cache
def get_settlement_scheduler() -> SettlementScheduler:
    """Build the periodic sweep scheduler (not started)."""
    sweep = build_sweep_use_case(get_engine(), get_price_resolver(), get_sweep_guard())
    return SettlementScheduler(sweep, interval_seconds=settings.sweep_interval_seconds)


# ------------------------------------------------------------------
# Builders
# ------------------------------------------------------------------


def build_ledger(engine: Engine) -> BalanceLedger:
    return BalanceLedger(BalanceLedgerRepositoryAdapter(engine))


def build_settlement_engine(engine: Engine) -> SettlementEngine:
    return SettlementEngine(
        orders=OrderRepositoryAdapter(engine),
        ledger=build_ledger(engine),
        unit_of_work=SqlUnitOfWork(engine),
        settlement_currency=settings.settlement_currency,
        adjustment_rate=settings.sweep_adjustment_rate,
    )


def build_sweep_use_case(
    engine: Engine, resolver: PriceResolver, guard: SweepGuard
) -> RunSettlementSweepUseCase:
    return RunSettlementSweepUseCase(
        orders=OrderRepositoryAdapter(engine),
        resolver=resolver,
        engine=build_settlement_engine(engine),
        trackers=PriceTrackerRepositoryAdapter(
            engine, history_size=settings.price_history_size
        ),
        guard=guard,
        require_expiry=settings.sweep_require_expiry,
    )


# ------------------------------------------------------------------
# Use cases
# ------------------------------------------------------------------


def get_submit_order_use_case(
    engine: Engine = Depends(get_engine),
    resolver: PriceResolver = Depends(get_price_resolver),
) -> SubmitOrderUseCase:
    """Build SubmitOrderUseCase with its infrastructure dependencies."""
    return SubmitOrderUseCase(
        orders=OrderRepositoryAdapter(engine),
        balances=BalanceLedgerRepositoryAdapter(engine),
        resolver=resolver,
        settlement_currency=settings.settlement_currency,
    )


def get_active_orders_use_case(
    engine: Engine = Depends(get_engine),
) -> GetActiveOrdersUseCase:
    """Build GetActiveOrdersUseCase with its infrastructure dependencies."""
    return GetActiveOrdersUseCase(
        orders=OrderRepositoryAdapter(engine),
        engine=build_settlement_engine(engine),
    )


def get_order_history_use_case(
    engine: Engine = Depends(get_engine),
) -> GetOrderHistoryUseCase:
    """Build GetOrderHistoryUseCase with its infrastructure dependencies."""
    return GetOrderHistoryUseCase(orders=OrderRepositoryAdapter(engine))


def get_close_order_use_case(
    engine: Engine = Depends(get_engine),
    resolver: PriceResolver = Depends(get_price_resolver),
) -> CloseOrderUseCase:
    """Build CloseOrderUseCase with its infrastructure dependencies."""
    return CloseOrderUseCase(
        orders=OrderRepositoryAdapter(engine),
        resolver=resolver,
        engine=build_settlement_engine(engine),
    )


def get_swap_use_case(
    engine: Engine = Depends(get_engine),
    resolver: PriceResolver = Depends(get_price_resolver),
) -> SwapCurrencyUseCase:
    """Build SwapCurrencyUseCase with its infrastructure dependencies."""
    return SwapCurrencyUseCase(
        ledger=build_ledger(engine),
        resolver=resolver,
        unit_of_work=SqlUnitOfWork(engine),
    )


def get_balances_use_case(
    engine: Engine = Depends(get_engine),
) -> GetBalancesUseCase:
    """Build GetBalancesUseCase with its infrastructure dependencies."""
    return GetBalancesUseCase(balances=BalanceLedgerRepositoryAdapter(engine))


def get_transactions_use_case(
    engine: Engine = Depends(get_engine),
) -> GetTransactionsUseCase:
    """Build GetTransactionsUseCase with its infrastructure dependencies."""
    return GetTransactionsUseCase(balances=BalanceLedgerRepositoryAdapter(engine))


def get_price_tracker_use_case(
    engine: Engine = Depends(get_engine),
) -> GetPriceTrackerUseCase:
    """Build GetPriceTrackerUseCase with its infrastructure dependencies."""
    return GetPriceTrackerUseCase(
        trackers=PriceTrackerRepositoryAdapter(
            engine, history_size=settings.price_history_size
        )
    )


def get_admin_list_orders_use_case(
    engine: Engine = Depends(get_engine),
) -> AdminListOrdersUseCase:
    """Build AdminListOrdersUseCase with its infrastructure dependencies."""
    return AdminListOrdersUseCase(
        orders=OrderRepositoryAdapter(engine),
        engine=build_settlement_engine(engine),
    )


def get_admin_settle_order_use_case(
    engine: Engine = Depends(get_engine),
) -> AdminSettleOrderUseCase:
    """Build AdminSettleOrderUseCase with its infrastructure dependencies."""
    return AdminSettleOrderUseCase(engine=build_settlement_engine(engine))


def get_adjust_balance_use_case(
    engine: Engine = Depends(get_engine),
) -> AdjustBalanceUseCase:
    """Build AdjustBalanceUseCase with its infrastructure dependencies."""
    return AdjustBalanceUseCase(
        users=UserDirectoryAdapter(engine),
        ledger=build_ledger(engine),
    )
