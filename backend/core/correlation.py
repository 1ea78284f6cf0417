"""
Correlation IDs shared by logs, Sentry events and error responses.

The ID of the current request lives in a ContextVar so services and
exceptions can pick it up without it being passed around.
"""

import re
import uuid
from contextvars import ContextVar

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

# Accept IDs forwarded by the portal or a proxy only if they are short and safe
# to echo back in a header and in log lines.
_VALID_INCOMING_ID = re.compile(r"^[A-Za-z0-9-]{1,64}$")


def generate_correlation_id() -> str:
    """Short (8 hex chars) ID that families can read out when reporting an error."""
    return uuid.uuid4().hex[:8]


def get_correlation_id() -> str:
    """Correlation ID of the current context, or '' outside a request."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def resolve_correlation_id(incoming: str | None) -> str:
    """
    Reuse a well-formed incoming X-Correlation-ID, otherwise generate one.

    Args:
        incoming: Header value sent by the client, if any

    Returns:
        The correlation ID to use for this request
    """
    if incoming and _VALID_INCOMING_ID.match(incoming):
        return incoming
    return generate_correlation_id()
