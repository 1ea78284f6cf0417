"""
Sentry SDK configuration.

- Enabled only when SENTRY_DSN is set
- PII scrubbing: families' emails, auth headers, cookies and request bodies
  (notification messages and uploaded files can hold personal data about
  minors) never leave the server
- Sampling tuned for a small group portal
- Loguru integration
"""

import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.types import Event, Hint

HEALTH_PATHS = ("/health", "/api/health")
FILTERED = "[Filtered]"


def _before_send(event: Event, hint: Hint) -> Event | None:
    """
    Scrub PII before sending to Sentry.

    Keeps only the user id, masks the Authorization header and drops
    cookies and request bodies.
    """
    user = event.get("user")
    if user:
        user.pop("email", None)
        user.pop("username", None)
        if "ip_address" in user:
            user["ip_address"] = "{{auto}}"

    request = event.get("request")
    if request and isinstance(request, dict):
        request.pop("cookies", None)
        if "data" in request:
            request["data"] = FILTERED
        headers = request.get("headers")
        if isinstance(headers, dict):
            for name in list(headers):
                if name.lower() == "authorization":
                    headers[name] = FILTERED

    return event


def _before_send_transaction(event: Event, hint: Hint) -> Event | None:
    """Drop health check transactions."""
    transaction_name = event.get("transaction", "")
    if any(transaction_name.endswith(path) for path in HEALTH_PATHS):
        return None
    return event


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """
    Per-request trace sampling.

    Uploads and storage migrations touch an external provider and are
    sampled more often; health checks never.
    """
    if sampling_context.get("parent_sampled") is True:
        return 1.0

    asgi_scope = sampling_context.get("asgi_scope", {})
    path = asgi_scope.get("path", "")

    if path in HEALTH_PATHS:
        return 0.0
    if path.startswith("/api/uploads"):
        return 0.5
    return 0.2


def init_sentry() -> None:
    """
    Initialize Sentry SDK with FastAPI integration.

    Call this BEFORE creating the FastAPI app instance.
    """
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=os.getenv("SENTRY_RELEASE", "unknown"),
        send_default_pii=False,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoguruIntegration(),
        ],
        traces_sampler=_traces_sampler,
        sample_rate=1.0,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        ignore_errors=[KeyboardInterrupt, SystemExit],
    )
