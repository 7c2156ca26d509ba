"""
Rate limiting for the trading routes.

Uses slowapi. Limits are counted per caller: the gateway-supplied
X-User-Id when present, otherwise the client address. Order
submission and swaps carry the stricter heavy limit.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings

DEFAULT_RATE_LIMIT = settings.rate_limit_default
HEAVY_RATE_LIMIT = settings.rate_limit_heavy


def caller_key(request: Request) -> str:
    """Bucket key for a request: ``user:<id>`` or the remote address."""
    user_id = request.headers.get("x-user-id", "").strip()
    if user_id:
        return f"user:{user_id}"
    return get_remote_address(request)


limiter = Limiter(
    key_func=caller_key,
    default_limits=[DEFAULT_RATE_LIMIT],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(
    _request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Return the standard error body with a 429."""
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded", "detail": str(exc.detail)},
    )
