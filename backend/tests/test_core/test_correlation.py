"""Tests for correlation ID generation, context and incoming header reuse."""

import re

import pytest

from core.correlation import (
    correlation_id_var,
    generate_correlation_id,
    get_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from models.exceptions import (
    DomainException,
    NoRecipientsException,
    NotificationNotFoundException,
    StorageException,
)


class TestGenerateCorrelationId:
    """Tests for generate_correlation_id."""

    def test_returns_8_lowercase_hex_characters(self) -> None:
        """IDs are short enough to be read out over the phone."""
        assert re.match(r"^[0-9a-f]{8}$", generate_correlation_id())

    def test_generates_unique_ids(self) -> None:
        ids = {generate_correlation_id() for _ in range(500)}
        assert len(ids) == 500


class TestCorrelationIdContext:
    """Tests for the request-scoped ContextVar."""

    def test_set_and_get(self) -> None:
        set_correlation_id("abc12345")
        assert get_correlation_id() == "abc12345"

    def test_empty_when_not_set(self) -> None:
        correlation_id_var.set("")
        assert get_correlation_id() == ""


class TestResolveCorrelationId:
    """Tests for reusing the X-Correlation-ID sent by the portal."""

    @pytest.mark.parametrize("incoming", ["front123", "a1b2-c3d4", "X" * 64])
    def test_reuses_well_formed_incoming_id(self, incoming: str) -> None:
        assert resolve_correlation_id(incoming) == incoming

    @pytest.mark.parametrize(
        "incoming",
        [None, "", "has space", "new\nline", "x" * 65, "{braces}", "semi;colon"],
    )
    def test_generates_new_id_for_missing_or_unsafe_values(
        self, incoming: str | None
    ) -> None:
        """Unsafe values are never echoed into headers or logs."""
        resolved = resolve_correlation_id(incoming)
        assert resolved != incoming
        assert re.match(r"^[0-9a-f]{8}$", resolved)


class TestDomainExceptionCorrelationId:
    """Domain exceptions carry the request correlation ID."""

    def setup_method(self) -> None:
        set_correlation_id("")

    def test_uses_context_correlation_id(self) -> None:
        set_correlation_id("context1")
        assert DomainException("boom").correlation_id == "context1"

    def test_generates_id_outside_a_request(self) -> None:
        assert len(DomainException("boom").correlation_id) == 8

    def test_explicit_id_wins(self) -> None:
        set_correlation_id("context1")
        exc = DomainException("boom", correlation_id="explicit")
        assert exc.correlation_id == "explicit"

    @pytest.mark.parametrize(
        "factory",
        [
            lambda: NotificationNotFoundException(7),
            lambda: NoRecipientsException("nobody"),
            lambda: StorageException("bucket unreachable"),
        ],
    )
    def test_subclasses_inherit_context_id(self, factory) -> None:
        set_correlation_id("inherit1")
        assert factory().correlation_id == "inherit1"

    def test_notification_not_found_message(self) -> None:
        exc = NotificationNotFoundException(42)
        assert exc.message == "Notification 42 not found"
        assert exc.notification_id == 42
