"""Tests for Sentry configuration and PII scrubbing."""

import os
from typing import Any
from unittest.mock import patch

import pytest

from core.sentry_config import (
    _before_send,
    _before_send_transaction,
    _traces_sampler,
    init_sentry,
)


class TestBeforeSendPIIScrubbing:
    """Families' data never leaves the server."""

    def test_scrubs_email_and_username_keeps_id(self) -> None:
        event: dict[str, Any] = {
            "user": {"id": "12", "email": "familia@example.com", "username": "m"}
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["user"] == {"id": "12"}  # type: ignore[typeddict-item]

    def test_anonymizes_ip_address(self) -> None:
        event: dict[str, Any] = {"user": {"id": "12", "ip_address": "10.0.0.1"}}
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result["user"]["ip_address"] == "{{auto}}"  # type: ignore[index]

    def test_filters_request_body(self) -> None:
        """Notification messages and uploads can mention minors."""
        event: dict[str, Any] = {
            "request": {"url": "/api/family-notifications/messages", "data": "{...}"}
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result["request"]["data"] == "[Filtered]"  # type: ignore[index]

    def test_filters_authorization_header_case_insensitive(self) -> None:
        event: dict[str, Any] = {
            "request": {
                "headers": {
                    "authorization": "Bearer secret",
                    "Content-Type": "application/json",
                },
                "cookies": {"session": "x"},
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        headers = result["request"]["headers"]  # type: ignore[index]
        assert headers["authorization"] == "[Filtered]"
        assert headers["Content-Type"] == "application/json"
        assert "cookies" not in result["request"]  # type: ignore[operator]

    def test_handles_bare_event(self) -> None:
        event: dict[str, Any] = {"message": "Test error"}
        assert _before_send(event, {}) == {"message": "Test error"}  # type: ignore[arg-type]


class TestBeforeSendTransaction:
    @pytest.mark.parametrize("path", ["/health", "/api/health", "GET /api/health"])
    def test_drops_health_checks(self, path: str) -> None:
        event: dict[str, Any] = {"transaction": path}
        assert _before_send_transaction(event, {}) is None  # type: ignore[arg-type]

    def test_keeps_other_transactions(self) -> None:
        event: dict[str, Any] = {"transaction": "/api/family-notifications/"}
        assert _before_send_transaction(event, {}) is not None  # type: ignore[arg-type]


class TestTracesSampler:
    def test_never_samples_health_checks(self) -> None:
        assert _traces_sampler({"asgi_scope": {"path": "/api/health"}}) == 0.0

    def test_uploads_sampled_more(self) -> None:
        assert _traces_sampler({"asgi_scope": {"path": "/api/uploads/migrate"}}) == 0.5

    def test_default_rate(self) -> None:
        context: dict[str, Any] = {"asgi_scope": {"path": "/api/activities"}}
        assert _traces_sampler(context) == 0.2

    def test_respects_parent_sampling(self) -> None:
        context: dict[str, Any] = {
            "parent_sampled": True,
            "asgi_scope": {"path": "/api/health"},
        }
        assert _traces_sampler(context) == 1.0

    def test_handles_missing_scope(self) -> None:
        assert _traces_sampler({}) == 0.2


class TestInitSentry:
    def test_without_dsn_does_nothing(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, {}, clear=True):
                init_sentry()
        mock_init.assert_not_called()

    def test_with_dsn_uses_environment(self) -> None:
        env_vars = {
            "SENTRY_DSN": "https://test@o0.ingest.sentry.io/0",
            "ENVIRONMENT": "production",
            "SENTRY_RELEASE": "2.0.1",
        }
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, env_vars):
                init_sentry()
        kwargs = mock_init.call_args.kwargs
        assert kwargs["dsn"] == env_vars["SENTRY_DSN"]
        assert kwargs["environment"] == "production"
        assert kwargs["release"] == "2.0.1"
        assert kwargs["send_default_pii"] is False
