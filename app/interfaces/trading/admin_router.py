"""
FastAPI router for privileged trading operations.

Every route requires the X-Admin-Key header.
All routes delegate to use cases or the settlement scheduler.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends

from app.application.trading.adjust_balance import AdjustBalanceUseCase
from app.application.trading.admin_list_orders import AdminListOrdersUseCase
from app.application.trading.admin_settle_order import AdminSettleOrderUseCase
from app.application.trading.dtos import (
    AdjustBalanceCommand,
    AdminSettleCommand,
    OrderSearchQuery,
)
from app.domain.trading.entities import OrderStatus
from app.infrastructure.trading.settlement_scheduler import SettlementScheduler
from app.interfaces.trading.dependencies import (
    get_adjust_balance_use_case,
    get_admin_list_orders_use_case,
    get_admin_settle_order_use_case,
    get_settlement_scheduler,
)
from app.interfaces.trading.schemas import (
    AdjustBalanceRequest,
    AdjustBalanceResponse,
    AdminOrderListResponse,
    AdminSettleRequest,
    AdminSettleResponse,
    ErrorResponse,
    LedgerEntryResponse,
    OrderResponse,
    OrderSummaryResponse,
    SchedulerStatusResponse,
    SweepReportResponse,
)
from app.shared.security.identity import require_admin

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
    responses={403: {"model": ErrorResponse}},
)


@router.get(
    "/orders",
    response_model=AdminOrderListResponse,
    summary="Search orders",
    description="Filter orders across all users. Elapsed active orders are settled first.",
)
def list_orders(
    status: Optional[OrderStatus] = None,
    direction: Optional[Literal["long", "short"]] = None,
    ticker: Optional[str] = None,
    outcome: Optional[Literal["pending", "profit", "loss"]] = None,
    user_id: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    min_pnl: Optional[Decimal] = None,
    max_pnl: Optional[Decimal] = None,
    min_percentage: Optional[int] = None,
    max_percentage: Optional[int] = None,
    use_case: AdminListOrdersUseCase = Depends(get_admin_list_orders_use_case),
) -> AdminOrderListResponse:
    """List orders with a summary."""
    result = use_case.execute(
        OrderSearchQuery(
            status=status,
            direction=direction,
            ticker=ticker,
            outcome=outcome,
            user_id=user_id,
            start=start,
            end=end,
            min_pnl=min_pnl,
            max_pnl=max_pnl,
            min_percentage=min_percentage,
            max_percentage=max_percentage,
        )
    )
    return AdminOrderListResponse(
        orders=[OrderResponse.from_order(o) for o in result.orders],
        summary=OrderSummaryResponse.from_summary(result.summary),
    )


@router.post(
    "/orders/{order_id}/settle",
    response_model=AdminSettleResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Settle an order manually",
    description="Close an active or pending_profit order as a profit or a loss.",
)
def settle_order(
    order_id: str,
    body: AdminSettleRequest,
    use_case: AdminSettleOrderUseCase = Depends(get_admin_settle_order_use_case),
) -> AdminSettleResponse:
    """Apply an admin override to one order."""
    result = use_case.execute(AdminSettleCommand(order_id=order_id, action=body.action))
    return AdminSettleResponse(
        order=OrderResponse.from_order(result.order),
        ledger_entry=(
            LedgerEntryResponse.from_entry(result.ledger_entry)
            if result.ledger_entry is not None
            else None
        ),
    )


@router.post(
    "/users/{user_ref}/balance",
    response_model=AdjustBalanceResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Adjust a user's balance",
    description="Add to or subtract from a balance. The user is addressed by id or email.",
)
def adjust_balance(
    user_ref: str,
    body: AdjustBalanceRequest,
    use_case: AdjustBalanceUseCase = Depends(get_adjust_balance_use_case),
) -> AdjustBalanceResponse:
    """Credit or debit a user's balance."""
    result = use_case.execute(
        AdjustBalanceCommand(
            user_ref=user_ref,
            currency=body.currency,
            amount=body.amount,
            operation=body.operation,
            reason=body.reason,
            network=body.network,
        )
    )
    return AdjustBalanceResponse(
        user_id=result.user_id,
        email=result.email,
        entry=LedgerEntryResponse.from_entry(result.entry),
    )


@router.post(
    "/sweeps",
    response_model=SweepReportResponse,
    summary="Run a settlement sweep now",
    description="Runs synchronously. Reported as skipped if a sweep is already running.",
)
def run_sweep(
    scheduler: SettlementScheduler = Depends(get_settlement_scheduler),
) -> SweepReportResponse:
    """Trigger a settlement sweep."""
    return SweepReportResponse.from_report(scheduler.run_now(owner="admin"))


@router.get(
    "/sweeps",
    response_model=SchedulerStatusResponse,
    summary="Scheduler status",
)
def get_sweeps(
    scheduler: SettlementScheduler = Depends(get_settlement_scheduler),
) -> SchedulerStatusResponse:
    """Return scheduler state and recent sweep reports."""
    status = scheduler.get_status()
    return SchedulerStatusResponse(
        running=status["running"],
        interval_seconds=status["interval_seconds"],
        next_run_at=status["next_run_at"],
        recent=[SweepReportResponse.from_report(r) for r in status["recent"]],
    )
