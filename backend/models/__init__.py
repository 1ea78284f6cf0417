"""Models package - Pydantic schemas and domain types."""

from .notification_types import (
    NotificationCategory,
    NotificationFrequency,
    NotificationKind,
    NotificationPriority,
    NotificationState,
    UserRole,
)

__all__ = [
    "NotificationCategory",
    "NotificationFrequency",
    "NotificationKind",
    "NotificationPriority",
    "NotificationState",
    "UserRole",
]
