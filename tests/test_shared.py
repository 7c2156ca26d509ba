"""
Tests for cross-cutting concerns: log redaction, rate-limit keys
and caller identity.
"""

import logging

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from app.shared.logging import REDACTED, SecretRedactingFilter
from app.shared.security.identity import get_current_user_id, require_admin
from app.shared.security.rate_limiting import caller_key


def _request(headers: dict[str, str]) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
            "client": ("10.0.0.7", 5000),
        }
    )


class TestSecretRedactingFilter:
    """Tests for scrubbing secrets from log records."""

    def _record(self, msg, *args) -> logging.LogRecord:
        return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)

    def test_secret_in_arguments_is_replaced(self) -> None:
        record = self._record("rejected key %s", "s3cret-key")
        assert SecretRedactingFilter(["s3cret-key"]).filter(record) is True
        assert record.getMessage() == f"rejected key {REDACTED}"

    def test_clean_record_is_untouched(self) -> None:
        record = self._record("sweep settled %d orders", 3)
        SecretRedactingFilter(["s3cret-key"]).filter(record)
        assert record.args == (3,)
        assert record.getMessage() == "sweep settled 3 orders"

    def test_empty_secret_is_ignored(self) -> None:
        record = self._record("nothing to hide")
        SecretRedactingFilter([""]).filter(record)
        assert record.getMessage() == "nothing to hide"


class TestRateLimitKey:
    """Tests for the per-caller rate-limit bucket."""

    def test_keyed_by_user_when_identified(self) -> None:
        assert caller_key(_request({"X-User-Id": "user-1"})) == "user:user-1"

    def test_falls_back_to_client_address(self) -> None:
        assert caller_key(_request({})) == "10.0.0.7"


class TestIdentity:
    """Tests for the identity dependencies."""

    def test_user_id_is_trimmed(self) -> None:
        assert get_current_user_id("  user-1 ") == "user-1"

    def test_blank_user_id_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            get_current_user_id("   ")
        assert exc_info.value.status_code == 401

    def test_admin_key_must_match(self) -> None:
        require_admin("test-admin-key")
        with pytest.raises(HTTPException) as exc_info:
            require_admin("wrong")
        assert exc_info.value.status_code == 403
