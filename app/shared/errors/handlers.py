"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse schema.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.domain.trading.errors import (
    BalanceNotFoundError,
    InsufficientFundsError,
    InvalidLedgerOperationError,
    InvalidOrderError,
    InvalidSettlementActionError,
    InvalidSwapError,
    OrderNotFoundError,
    PriceTrackerNotFoundError,
    PriceUnavailableError,
    TradingDomainError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_404 = 404
HTTP_422 = 422
HTTP_500 = 500
HTTP_503 = 503


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(InvalidOrderError)
    async def handle_invalid_order(
        _request: Request, exc: InvalidOrderError
    ) -> JSONResponse:
        """Handle rejected order submissions."""
        logger.warning("Invalid order: %s", exc.message)
        return _error_response(HTTP_422, "Invalid order", exc.message)

    @app.exception_handler(InvalidSwapError)
    async def handle_invalid_swap(
        _request: Request, exc: InvalidSwapError
    ) -> JSONResponse:
        """Handle malformed swap requests."""
        logger.warning("Invalid swap: %s", exc.reason)
        return _error_response(HTTP_422, "Invalid swap", exc.message)

    @app.exception_handler(InvalidLedgerOperationError)
    async def handle_invalid_ledger_operation(
        _request: Request, exc: InvalidLedgerOperationError
    ) -> JSONResponse:
        """Handle malformed balance adjustments."""
        logger.warning("Invalid ledger operation: %s", exc.reason)
        return _error_response(HTTP_422, "Invalid ledger operation", exc.message)

    @app.exception_handler(InvalidSettlementActionError)
    async def handle_invalid_settlement_action(
        _request: Request, exc: InvalidSettlementActionError
    ) -> JSONResponse:
        """Handle admin overrides with an unknown action."""
        logger.warning("Invalid settlement action: %s", exc.action)
        return _error_response(HTTP_422, "Invalid settlement action", exc.message)

    @app.exception_handler(InsufficientFundsError)
    async def handle_insufficient_funds(
        _request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        """Handle insufficient funds errors."""
        logger.warning("Insufficient funds: %s", exc.currency)
        return _error_response(HTTP_400, "Insufficient funds", exc.message)

    @app.exception_handler(PriceUnavailableError)
    async def handle_price_unavailable(
        _request: Request, exc: PriceUnavailableError
    ) -> JSONResponse:
        """Handle symbols no price tier knows."""
        logger.warning("Price unavailable: %s", exc.symbol)
        return _error_response(HTTP_503, "Price unavailable", exc.message)

    @app.exception_handler(OrderNotFoundError)
    async def handle_order_not_found(
        _request: Request, exc: OrderNotFoundError
    ) -> JSONResponse:
        """Handle missing or already-closed orders."""
        logger.warning("Order not found: %s", exc.order_id)
        return _error_response(HTTP_404, "Order not found", exc.message)

    @app.exception_handler(BalanceNotFoundError)
    async def handle_balance_not_found(
        _request: Request, exc: BalanceNotFoundError
    ) -> JSONResponse:
        """Handle missing balance records."""
        logger.warning("Balance not found: %s/%s", exc.user_id, exc.currency)
        return _error_response(HTTP_404, "Balance not found", exc.message)

    @app.exception_handler(UserNotFoundError)
    async def handle_user_not_found(
        _request: Request, exc: UserNotFoundError
    ) -> JSONResponse:
        """Handle unknown user references."""
        logger.warning("User not found")
        return _error_response(HTTP_404, "User not found")

    @app.exception_handler(PriceTrackerNotFoundError)
    async def handle_price_tracker_not_found(
        _request: Request, exc: PriceTrackerNotFoundError
    ) -> JSONResponse:
        """Handle tickers that have not been observed yet."""
        logger.info("No price tracker for %s", exc.ticker)
        return _error_response(HTTP_404, "Price not tracked", exc.message)

    @app.exception_handler(TradingDomainError)
    async def handle_trading_domain(
        _request: Request, exc: TradingDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled trading domain errors."""
        logger.error("Unhandled trading domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
