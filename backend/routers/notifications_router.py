"""
Family notifications router.

Family members read and manage their own notifications; monitors and admins
publish them. Static paths are declared before ``/{notification_id}``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimitLarge
from models.notification_types import (
    NotificationCategory,
    NotificationKind,
    NotificationPriority,
)
from repositories.database import get_db
from services.family_notification_service import FamilyNotificationService
from services.preferences_service import PreferencesService

router = APIRouter(prefix="/family-notifications", tags=["family-notifications"])


def _created_response(
    db: Session, notifications: List[db_models.FamilyNotification]
) -> schemas.NotificationsCreatedResponse:
    return schemas.NotificationsCreatedResponse(
        data=schemas.NotificationsCreated(
            created=len(notifications),
            ids=[notification.id for notification in notifications],
            deferred=FamilyNotificationService.count_deferred(db, notifications),
        )
    )


@router.get("/", response_model=schemas.NotificationListResponse)
def list_notifications(
    unread_only: bool = False,
    kind: Optional[NotificationKind] = None,
    category: Optional[NotificationCategory] = None,
    priority: Optional[NotificationPriority] = None,
    scout_id: Optional[int] = None,
    limit: PaginationLimitLarge = 50,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
):
    """
    List the current user's notifications.

    Expired notifications are never returned. Ordered by priority
    (high, normal, low) then newest first.
    """
    notifications = FamilyNotificationService.list_notifications(
        db,
        current_user,
        scout_id=scout_id,
        unread_only=unread_only,
        kind=kind,
        category=category,
        priority=priority,
        limit=limit,
    )
    return schemas.NotificationListResponse(data=notifications)


@router.get("/unread-count", response_model=schemas.UnreadCountResponse)
def get_unread_count(
    scout_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
):
    unread = FamilyNotificationService.get_unread_count(db, current_user, scout_id)
    return schemas.UnreadCountResponse(data=schemas.UnreadCount(unread=unread))


@router.post("/read-all", response_model=schemas.MarkAllReadResponse)
def mark_all_as_read(
    scout_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
):
    affected = FamilyNotificationService.mark_all_as_read(db, current_user, scout_id)
    return schemas.MarkAllReadResponse(data=schemas.AffectedCount(affected=affected))


@router.get("/preferences", response_model=schemas.NotificationPreferencesResponse)
def get_preferences(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
):
    """Get notification preferences (created with defaults on first read)."""
    preferences = PreferencesService.get_preferences(db, current_user.id)
    return schemas.NotificationPreferencesResponse(data=preferences)


@router.put("/preferences", response_model=schemas.NotificationPreferencesResponse)
def update_preferences(
    changes: schemas.NotificationPreferencesUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
):
    """Partially update notification preferences."""
    preferences = PreferencesService.update_preferences(db, current_user.id, changes)
    return schemas.NotificationPreferencesResponse(data=preferences)


@router.post(
    "/messages",
    response_model=schemas.NotificationsCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def send_message_to_monitors(
    payload: schemas.MonitorMessageCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
):
    """Send a message to the monitors of a scout's section."""
    notifications = FamilyNotificationService.send_message_to_monitors(
        db, current_user, payload
    )
    return _created_response(db, notifications)


# Staff endpoints


@router.post(
    "/",
    response_model=schemas.NotificationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_notification(
    payload: schemas.NotificationCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_staff_user),
):
    """Create a notification for one family member (monitor/admin)."""
    notification = FamilyNotificationService.create_notification(
        db, current_user, payload
    )
    return schemas.NotificationResponse(data=notification)


@router.post(
    "/bulk",
    response_model=schemas.NotificationsCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_bulk_notifications(
    payload: schemas.NotificationBulkCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_staff_user),
):
    """Notify every family member linked to the given scouts (monitor/admin)."""
    notifications = FamilyNotificationService.create_bulk(db, current_user, payload)
    return _created_response(db, notifications)


@router.post(
    "/sections/{section}",
    response_model=schemas.NotificationsCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def notify_section(
    section: str,
    payload: schemas.SectionNotificationCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_staff_user),
):
    """Notify every family of the active scouts in a section (monitor/admin)."""
    notifications = FamilyNotificationService.notify_section(
        db, current_user, section, payload
    )
    return _created_response(db, notifications)


# Single notification endpoints


@router.get("/{notification_id}", response_model=schemas.NotificationResponse)
def get_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
):
    notification = FamilyNotificationService.get_notification(
        db, current_user, notification_id
    )
    return schemas.NotificationResponse(data=notification)


@router.post("/{notification_id}/read", response_model=schemas.NotificationResponse)
def mark_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
):
    notification = FamilyNotificationService.mark_as_read(
        db, current_user, notification_id
    )
    return schemas.NotificationResponse(data=notification)


@router.post(
    "/{notification_id}/archive", response_model=schemas.NotificationResponse
)
def archive_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
):
    notification = FamilyNotificationService.archive(db, current_user, notification_id)
    return schemas.NotificationResponse(data=notification)


@router.delete("/{notification_id}", response_model=schemas.MessageResponse)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
):
    FamilyNotificationService.delete(db, current_user, notification_id)
    return schemas.MessageResponse(message="Notification deleted")
