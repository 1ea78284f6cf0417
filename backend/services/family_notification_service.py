"""
Family notification business logic.

Family members only ever see their own notifications and may only filter by
scouts they are linked to. Monitors and admins publish notifications, either
to one family member or fanned out through the scout/family links.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.time_utils import utc_now
from models.config import settings
from models.exceptions import (
    NoRecipientsException,
    NotificationNotFoundException,
    ScoutAccessDeniedException,
    ScoutNotFoundException,
    UserNotFoundException,
)
from models.notification_types import (
    NotificationCategory,
    NotificationKind,
    NotificationPriority,
    NotificationState,
)
from repositories.family_notification_repository import FamilyNotificationRepository
from repositories.scout_repository import ScoutRepository
from repositories.user_repository import UserRepository
from services.preferences_service import PreferencesService


class FamilyNotificationService:
    """Service for family notification operations."""

    # ------------------------------------------------------------------ #
    # Access helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def check_scout_access(
        db: Session, user: db_models.User, scout_id: Optional[int]
    ) -> None:
        """
        Verify the user may act on a scout's notifications.

        Raises:
            ScoutNotFoundException: If the scout does not exist.
            ScoutAccessDeniedException: If a family member is not linked to it.
        """
        if scout_id is None:
            return
        scout_repo = ScoutRepository(db)
        if not scout_repo.exists(scout_id):
            raise ScoutNotFoundException(f"Scout {scout_id} not found")
        if user.role.is_staff:
            return
        if not scout_repo.is_linked(user.id, scout_id):
            raise ScoutAccessDeniedException(scout_id)

    @staticmethod
    def _get_owned(
        db: Session, user: db_models.User, notification_id: int
    ) -> db_models.FamilyNotification:
        notification = FamilyNotificationRepository(db).get_for_member(
            notification_id, user.id
        )
        if notification is None:
            raise NotificationNotFoundException(notification_id)
        return notification

    # ------------------------------------------------------------------ #
    # Family member operations
    # ------------------------------------------------------------------ #

    @classmethod
    def list_notifications(
        cls,
        db: Session,
        user: db_models.User,
        scout_id: Optional[int] = None,
        unread_only: bool = False,
        kind: Optional[NotificationKind] = None,
        category: Optional[NotificationCategory] = None,
        priority: Optional[NotificationPriority] = None,
        limit: Optional[int] = None,
    ) -> List[db_models.FamilyNotification]:
        """
        List the current user's non-expired notifications.

        Args:
            db: Database session
            user: Current user
            scout_id: Only notifications about this scout
            unread_only: Only unread notifications
            kind: Filter by kind
            category: Filter by category
            priority: Filter by priority
            limit: Maximum results (defaults to NOTIFICATION_DEFAULT_LIMIT)

        Returns:
            Notifications ordered by priority then newest first
        """
        cls.check_scout_access(db, user, scout_id)
        return FamilyNotificationRepository(db).list_for_member(
            family_member_id=user.id,
            now=utc_now(),
            scout_id=scout_id,
            unread_only=unread_only,
            kind=kind,
            category=category,
            priority=priority,
            limit=limit or settings.NOTIFICATION_DEFAULT_LIMIT,
        )

    @classmethod
    def get_notification(
        cls, db: Session, user: db_models.User, notification_id: int
    ) -> db_models.FamilyNotification:
        return cls._get_owned(db, user, notification_id)

    @classmethod
    def get_unread_count(
        cls, db: Session, user: db_models.User, scout_id: Optional[int] = None
    ) -> int:
        cls.check_scout_access(db, user, scout_id)
        return FamilyNotificationRepository(db).count_unread(
            user.id, utc_now(), scout_id
        )

    @classmethod
    def mark_as_read(
        cls, db: Session, user: db_models.User, notification_id: int
    ) -> db_models.FamilyNotification:
        """
        Mark a notification as read.

        Archived notifications stay archived; only their read_at is filled in.
        Marking an already read notification keeps the original read_at.
        """
        notification = cls._get_owned(db, user, notification_id)
        if notification.read_at is None:
            notification.read_at = utc_now()
        if notification.state == NotificationState.UNREAD:
            notification.state = NotificationState.READ
        return FamilyNotificationRepository(db).update(notification)

    @classmethod
    def mark_all_as_read(
        cls, db: Session, user: db_models.User, scout_id: Optional[int] = None
    ) -> int:
        """
        Mark every unread, non-expired notification as read.

        Returns:
            Number of notifications affected
        """
        cls.check_scout_access(db, user, scout_id)
        affected = FamilyNotificationRepository(db).mark_all_read(
            user.id, utc_now(), scout_id
        )
        logger.info(
            "Marked notifications as read",
            user_id=user.id,
            scout_id=scout_id,
            affected=affected,
        )
        return affected

    @classmethod
    def archive(
        cls, db: Session, user: db_models.User, notification_id: int
    ) -> db_models.FamilyNotification:
        notification = cls._get_owned(db, user, notification_id)
        if notification.state != NotificationState.ARCHIVED:
            notification.state = NotificationState.ARCHIVED
            notification.archived_at = utc_now()
        return FamilyNotificationRepository(db).update(notification)

    @classmethod
    def delete(cls, db: Session, user: db_models.User, notification_id: int) -> None:
        notification = cls._get_owned(db, user, notification_id)
        FamilyNotificationRepository(db).delete(notification)

    # ------------------------------------------------------------------ #
    # Publishing (monitors and admins)
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build(
        payload: schemas.NotificationBase,
        family_member_id: int,
        scout_id: Optional[int],
        sender: db_models.User,
    ) -> db_models.FamilyNotification:
        return db_models.FamilyNotification(
            family_member_id=family_member_id,
            scout_id=scout_id,
            title=payload.title,
            message=payload.message,
            kind=payload.kind,
            priority=payload.priority,
            priority_rank=payload.priority.rank,
            category=payload.category,
            action_url=payload.action_url,
            extra_data=payload.metadata,
            expires_at=payload.expires_at,
            state=NotificationState.UNREAD,
            sender_name=sender.full_name,
            sender_role=sender.role.value,
        )

    @staticmethod
    def count_deferred(
        db: Session, notifications: List[db_models.FamilyNotification]
    ) -> int:
        """
        Count notifications whose out-of-band delivery must wait.

        Uses each recipient's preferences (created with defaults when missing).
        """
        now = utc_now()
        deferred = 0
        for notification in notifications:
            preferences = PreferencesService.get_preferences(
                db, notification.family_member_id
            )
            if not PreferencesService.should_deliver(
                preferences, notification.kind, now
            ):
                deferred += 1
        return deferred

    @classmethod
    def create_notification(
        cls,
        db: Session,
        sender: db_models.User,
        payload: schemas.NotificationCreate,
    ) -> db_models.FamilyNotification:
        """
        Create a notification for one family member.

        Raises:
            UserNotFoundException: If the recipient does not exist.
            ScoutNotFoundException: If the scout does not exist.
        """
        if not UserRepository(db).exists(payload.family_member_id):
            raise UserNotFoundException(
                f"User {payload.family_member_id} not found"
            )
        if payload.scout_id is not None:
            if not ScoutRepository(db).exists(payload.scout_id):
                raise ScoutNotFoundException(f"Scout {payload.scout_id} not found")

        notification = cls._build(
            payload, payload.family_member_id, payload.scout_id, sender
        )
        return FamilyNotificationRepository(db).create(notification)

    @classmethod
    def _fan_out(
        cls,
        db: Session,
        sender: db_models.User,
        payload: schemas.NotificationBase,
        scout_ids: List[int],
    ) -> List[db_models.FamilyNotification]:
        links = ScoutRepository(db).get_family_links(scout_ids)
        if not links:
            raise NoRecipientsException("No family members are linked to these scouts")

        notifications = [
            cls._build(payload, family_member_id, scout_id, sender)
            for family_member_id, scout_id in links
        ]
        return FamilyNotificationRepository(db).create_many(notifications)

    @classmethod
    def create_bulk(
        cls,
        db: Session,
        sender: db_models.User,
        payload: schemas.NotificationBulkCreate,
    ) -> List[db_models.FamilyNotification]:
        """
        Create one notification per linked family member of each scout.

        Raises:
            ScoutNotFoundException: If any scout does not exist.
            NoRecipientsException: If no family member is linked.
        """
        scout_ids = list(dict.fromkeys(payload.scout_ids))
        missing = ScoutRepository(db).first_missing_id(scout_ids)
        if missing is not None:
            raise ScoutNotFoundException(f"Scout {missing} not found")

        notifications = cls._fan_out(db, sender, payload, scout_ids)
        logger.info(
            "Bulk notification created",
            sender_id=sender.id,
            scouts=len(scout_ids),
            created=len(notifications),
        )
        return notifications

    @classmethod
    def notify_section(
        cls,
        db: Session,
        sender: db_models.User,
        section: str,
        payload: schemas.SectionNotificationCreate,
    ) -> List[db_models.FamilyNotification]:
        """
        Notify every family linked to an active scout of a section.

        Raises:
            NoRecipientsException: If the section has no linked families.
        """
        scouts = ScoutRepository(db).get_active_by_section(section)
        notifications = cls._fan_out(
            db, sender, payload, [scout.id for scout in scouts]
        )
        logger.info(
            "Section notification created",
            sender_id=sender.id,
            section=section,
            created=len(notifications),
        )
        return notifications

    @classmethod
    def send_message_to_monitors(
        cls,
        db: Session,
        sender: db_models.User,
        payload: schemas.MonitorMessageCreate,
    ) -> List[db_models.FamilyNotification]:
        """
        Deliver a family member's message to the staff of the scout's section.

        Stored as a ``direct_message`` notification for each monitor of the
        section and every admin.

        Raises:
            ScoutNotFoundException: If the scout does not exist.
            ScoutAccessDeniedException: If the sender is not linked to the scout.
            NoRecipientsException: If nobody can receive the message.
        """
        scout = ScoutRepository(db).get_by_id(payload.scout_id)
        if scout is None:
            raise ScoutNotFoundException(f"Scout {payload.scout_id} not found")
        cls.check_scout_access(db, sender, scout.id)

        recipients = UserRepository(db).get_staff_for_section(scout.section)
        if not recipients:
            raise NoRecipientsException(
                f"No monitors available for section {scout.section}"
            )

        message = schemas.NotificationBase(
            title=payload.subject,
            message=payload.body,
            kind=NotificationKind.DIRECT_MESSAGE,
            priority=payload.urgency,
            category=payload.category,
            metadata={
                "from_user_id": sender.id,
                "scout_id": scout.id,
                "section": scout.section,
            },
        )
        notifications = [
            cls._build(message, recipient.id, scout.id, sender)
            for recipient in recipients
        ]
        FamilyNotificationRepository(db).create_many(notifications)
        logger.info(
            "Message sent to monitors",
            sender_id=sender.id,
            scout_id=scout.id,
            recipients=len(notifications),
        )
        return notifications

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    @staticmethod
    def delete_expired(db: Session) -> int:
        """Purge notifications whose expiry has passed."""
        return FamilyNotificationRepository(db).delete_expired(utc_now())
