"""
FastAPI router for the trading bounded context (user routes).

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas.
Error mapping is handled by centralized error handlers.
The caller is identified by the X-User-Id header.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from app.application.trading.close_order import CloseOrderUseCase
from app.application.trading.dtos import (
    CloseOrderCommand,
    SubmitOrderCommand,
    SwapCommand,
)
from app.application.trading.get_active_orders import GetActiveOrdersUseCase
from app.application.trading.get_balances import GetBalancesUseCase
from app.application.trading.get_order_history import GetOrderHistoryUseCase
from app.application.trading.get_price_tracker import GetPriceTrackerUseCase
from app.application.trading.get_transactions import GetTransactionsUseCase
from app.application.trading.submit_order import SubmitOrderUseCase
from app.application.trading.swap_currency import SwapCurrencyUseCase
from app.domain.trading.entities import TransactionType
from app.interfaces.trading.dependencies import (
    get_active_orders_use_case,
    get_balances_use_case,
    get_close_order_use_case,
    get_order_history_use_case,
    get_price_tracker_use_case,
    get_submit_order_use_case,
    get_swap_use_case,
    get_transactions_use_case,
)
from app.interfaces.trading.schemas import (
    ActiveOrderListResponse,
    ActiveOrderResponse,
    BalanceListResponse,
    BalanceResponse,
    ErrorResponse,
    LedgerEntryResponse,
    OrderListResponse,
    OrderResponse,
    PriceTrackerResponse,
    SubmitOrderRequest,
    SwapRequest,
    SwapResponse,
    TransactionListResponse,
    TransactionResponse,
)
from app.shared.security.identity import get_current_user_id
from app.shared.security.rate_limiting import HEAVY_RATE_LIMIT, limiter

router = APIRouter(prefix="/trading", tags=["trading"])


@router.post(
    "/orders",
    status_code=201,
    response_model=OrderResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Open a timed order",
    description="Open a long or short order on a BASE/QUOTE pair for 30s, 60s, 120s or 300s.",
)
@limiter.limit(HEAVY_RATE_LIMIT)
def submit_order(
    request: Request,
    body: SubmitOrderRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: SubmitOrderUseCase = Depends(get_submit_order_use_case),
) -> OrderResponse:
    """Open a timed order for the caller."""
    command = SubmitOrderCommand(
        user_id=user_id,
        direction=body.direction,
        ticker=body.ticker,
        duration=body.duration,
        quantity=body.quantity,
        display_duration=body.display_duration,
    )
    return OrderResponse.from_order(use_case.execute(command))


@router.get(
    "/orders/active",
    response_model=ActiveOrderListResponse,
    summary="List active orders",
    description="Active orders with time remaining. Elapsed orders are settled first.",
)
def get_active_orders(
    user_id: str = Depends(get_current_user_id),
    use_case: GetActiveOrdersUseCase = Depends(get_active_orders_use_case),
) -> ActiveOrderListResponse:
    """List the caller's active orders."""
    views = use_case.execute(user_id)
    return ActiveOrderListResponse(
        orders=[ActiveOrderResponse.from_view(v) for v in views]
    )


@router.get(
    "/orders/history",
    response_model=OrderListResponse,
    summary="Order history",
    description="Every order the caller placed, newest first.",
)
def get_order_history(
    user_id: str = Depends(get_current_user_id),
    use_case: GetOrderHistoryUseCase = Depends(get_order_history_use_case),
) -> OrderListResponse:
    """List all of the caller's orders."""
    return OrderListResponse(
        orders=[OrderResponse.from_order(o) for o in use_case.execute(user_id)]
    )


@router.post(
    "/orders/{order_id}/close",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Close an order",
    description="Close an active order at the current price. Records percentage PnL.",
)
def close_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    use_case: CloseOrderUseCase = Depends(get_close_order_use_case),
) -> OrderResponse:
    """Close one of the caller's active orders."""
    order = use_case.execute(CloseOrderCommand(user_id=user_id, order_id=order_id))
    return OrderResponse.from_order(order)


@router.post(
    "/swap",
    response_model=SwapResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Swap currencies",
    description="Convert an amount of one held currency into another at the current rate.",
)
@limiter.limit(HEAVY_RATE_LIMIT)
def swap(
    request: Request,
    body: SwapRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: SwapCurrencyUseCase = Depends(get_swap_use_case),
) -> SwapResponse:
    """Swap between two of the caller's balances."""
    result = use_case.execute(
        SwapCommand(
            user_id=user_id,
            from_currency=body.from_currency,
            to_currency=body.to_currency,
            amount=body.amount,
        )
    )
    return SwapResponse(
        from_currency=result.from_currency,
        to_currency=result.to_currency,
        from_amount=result.from_amount,
        to_amount=result.to_amount,
        rate=result.rate,
        price_source=result.price_source,
        debit=LedgerEntryResponse.from_entry(result.debit),
        credit=LedgerEntryResponse.from_entry(result.credit),
    )


@router.get(
    "/swap/history",
    response_model=TransactionListResponse,
    summary="Swap history",
)
def get_swap_history(
    user_id: str = Depends(get_current_user_id),
    use_case: GetTransactionsUseCase = Depends(get_transactions_use_case),
) -> TransactionListResponse:
    """List the caller's swap journal entries."""
    transactions = use_case.execute(user_id, type=TransactionType.SWAP)
    return TransactionListResponse(
        transactions=[TransactionResponse.from_transaction(t) for t in transactions]
    )


@router.get(
    "/balances",
    response_model=BalanceListResponse,
    summary="List balances",
)
def get_balances(
    user_id: str = Depends(get_current_user_id),
    use_case: GetBalancesUseCase = Depends(get_balances_use_case),
) -> BalanceListResponse:
    """List every balance the caller holds."""
    return BalanceListResponse(
        balances=[BalanceResponse.from_balance(b) for b in use_case.execute(user_id)]
    )


@router.get(
    "/transactions",
    response_model=TransactionListResponse,
    summary="List journal entries",
    description="The caller's transaction journal, newest first, optionally by type.",
)
def get_transactions(
    type: Optional[TransactionType] = None,
    user_id: str = Depends(get_current_user_id),
    use_case: GetTransactionsUseCase = Depends(get_transactions_use_case),
) -> TransactionListResponse:
    """List the caller's journal entries."""
    transactions = use_case.execute(user_id, type=type)
    return TransactionListResponse(
        transactions=[TransactionResponse.from_transaction(t) for t in transactions]
    )


@router.get(
    "/prices/{base}/{quote}",
    response_model=PriceTrackerResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Observed price",
    description="Last price seen by the settlement sweep and its recent history.",
)
def get_price(
    base: str,
    quote: str,
    use_case: GetPriceTrackerUseCase = Depends(get_price_tracker_use_case),
) -> PriceTrackerResponse:
    """Return the price tracker for BASE/QUOTE."""
    return PriceTrackerResponse.from_tracker(use_case.execute(base, quote))
