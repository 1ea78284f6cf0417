"""
Repository pattern implementation for data access layer.
"""

from .activity_repository import ActivityRepository
from .base import BaseRepository
from .family_notification_repository import FamilyNotificationRepository
from .notification_preferences_repository import NotificationPreferencesRepository
from .scout_repository import ScoutRepository
from .uploaded_file_repository import UploadedFileRepository
from .user_repository import UserRepository

__all__ = [
    "ActivityRepository",
    "BaseRepository",
    "FamilyNotificationRepository",
    "NotificationPreferencesRepository",
    "ScoutRepository",
    "UploadedFileRepository",
    "UserRepository",
]
