"""
Caller identity.

Authentication happens upstream: the gateway forwards the caller's
user id in ``X-User-Id``. Admin routes also require ``X-Admin-Key``
to match the configured ADMIN_API_KEY.
"""

import logging
import secrets

from fastapi import Header, HTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)


def get_current_user_id(
    x_user_id: str = Header(default="", max_length=64),
) -> str:
    """Return the authenticated caller's user id."""
    user_id = x_user_id.strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing user identity")
    return user_id


def require_admin(x_admin_key: str = Header(default="")) -> None:
    """Reject the request unless it carries the admin key."""
    expected = settings.admin_api_key
    if not expected or not secrets.compare_digest(x_admin_key, expected):
        logger.warning("Rejected admin request with invalid or missing key")
        raise HTTPException(status_code=403, detail="Admin access required")
