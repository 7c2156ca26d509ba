"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (user trading routes, admin routes, health)
- Error handlers (centralized domain-to-HTTP mapping)
- Rate limiting
- Logging configuration
- Settlement scheduler (periodic sweep)

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.interfaces.health import router as health_router
from app.interfaces.trading.admin_router import router as admin_router
from app.interfaces.trading.dependencies import get_settlement_scheduler
from app.interfaces.trading.router import router as trading_router
from app.shared.errors.handlers import register_error_handlers
from app.shared.logging import configure_logging
from app.shared.security.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: start/stop the settlement scheduler."""
    scheduler = None
    if settings.scheduler_enabled:
        scheduler = get_settlement_scheduler()
        scheduler.start()
    else:
        logger.info("Settlement scheduler disabled by configuration.")

    yield

    # Shutdown
    if scheduler is not None:
        scheduler.stop()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and rate limiting.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level, secrets=[settings.admin_api_key])

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(trading_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    return app


app = create_app()
