"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes.
"""

from .activity_service import ActivityService
from .family_notification_service import FamilyNotificationService
from .preferences_service import PreferencesService
from .upload_service import UploadService

__all__ = [
    "ActivityService",
    "FamilyNotificationService",
    "PreferencesService",
    "UploadService",
]
