"""Enumerations shared by the family notification models, schemas and client."""

import enum


class NotificationKind(str, enum.Enum):
    URGENT = "urgent"
    IMPORTANT = "important"
    INFORMATIVE = "informative"
    REMINDER = "reminder"
    DIRECT_MESSAGE = "direct_message"


class NotificationPriority(str, enum.Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank, lower is shown first."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    NotificationPriority.HIGH: 0,
    NotificationPriority.NORMAL: 1,
    NotificationPriority.LOW: 2,
}


class NotificationCategory(str, enum.Enum):
    DOCUMENTS = "documents"
    ACTIVITIES = "activities"
    GALLERY = "gallery"
    GENERAL = "general"
    ANNOUNCEMENTS = "announcements"


class NotificationState(str, enum.Enum):
    UNREAD = "unread"
    READ = "read"
    ARCHIVED = "archived"


class NotificationFrequency(str, enum.Enum):
    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"


class UserRole(str, enum.Enum):
    FAMILY = "family"
    MONITOR = "monitor"
    ADMIN = "admin"

    @property
    def is_staff(self) -> bool:
        """Monitors and admins can publish notifications and files."""
        return self in (UserRole.MONITOR, UserRole.ADMIN)
