"""
Family notification repository.

Every query that lists, counts or bulk-updates notifications excludes rows
whose ``expires_at`` is in the past. Callers pass ``now`` so a single request
uses one consistent cutoff.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

import repositories.db_models as db_models
from models.notification_types import (
    NotificationCategory,
    NotificationKind,
    NotificationPriority,
    NotificationState,
)

from .base import BaseRepository

Notification = db_models.FamilyNotification


class FamilyNotificationRepository(BaseRepository[db_models.FamilyNotification]):
    """Repository for family notification operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.FamilyNotification, db)

    def _visible_query(
        self, family_member_id: int, now: datetime, scout_id: Optional[int] = None
    ) -> Query:
        query = self.db.query(Notification).filter(
            Notification.family_member_id == family_member_id,
            or_(Notification.expires_at.is_(None), Notification.expires_at > now),
        )
        if scout_id is not None:
            query = query.filter(Notification.scout_id == scout_id)
        return query

    def list_for_member(
        self,
        family_member_id: int,
        now: datetime,
        scout_id: Optional[int] = None,
        unread_only: bool = False,
        kind: Optional[NotificationKind] = None,
        category: Optional[NotificationCategory] = None,
        priority: Optional[NotificationPriority] = None,
        limit: int = 50,
    ) -> List[db_models.FamilyNotification]:
        """
        List non-expired notifications for a family member.

        Ordered by priority (high first) then newest first.

        Args:
            family_member_id: Owner ID
            now: Expiry cutoff
            scout_id: Restrict to one scout
            unread_only: Only state == unread
            kind: Filter by kind
            category: Filter by category
            priority: Filter by priority
            limit: Maximum rows

        Returns:
            Notifications
        """
        query = self._visible_query(family_member_id, now, scout_id)
        if unread_only:
            query = query.filter(Notification.state == NotificationState.UNREAD)
        if kind is not None:
            query = query.filter(Notification.kind == kind)
        if category is not None:
            query = query.filter(Notification.category == category)
        if priority is not None:
            query = query.filter(Notification.priority == priority)
        return (
            query.order_by(
                Notification.priority_rank.asc(),
                Notification.created_at.desc(),
                Notification.id.desc(),
            )
            .limit(limit)
            .all()
        )

    def get_for_member(
        self, notification_id: int, family_member_id: int
    ) -> Optional[db_models.FamilyNotification]:
        """Get a notification only if it belongs to the family member."""
        return (
            self.db.query(Notification)
            .filter(
                Notification.id == notification_id,
                Notification.family_member_id == family_member_id,
            )
            .first()
        )

    def count_unread(
        self, family_member_id: int, now: datetime, scout_id: Optional[int] = None
    ) -> int:
        return (
            self._visible_query(family_member_id, now, scout_id)
            .filter(Notification.state == NotificationState.UNREAD)
            .count()
        )

    def mark_all_read(
        self, family_member_id: int, now: datetime, scout_id: Optional[int] = None
    ) -> int:
        """
        Mark every unread, non-expired notification as read.

        Returns:
            Number of rows updated
        """
        count = (
            self._visible_query(family_member_id, now, scout_id)
            .filter(Notification.state == NotificationState.UNREAD)
            .update(
                {
                    Notification.state: NotificationState.READ,
                    Notification.read_at: now,
                },
                synchronize_session=False,
            )
        )
        self.commit()
        return count

    def delete_expired(self, now: datetime) -> int:
        """
        Permanently delete notifications whose expiry has passed.

        Returns:
            Number of rows deleted
        """
        count = (
            self.db.query(Notification)
            .filter(Notification.expires_at.is_not(None), Notification.expires_at <= now)
            .delete(synchronize_session=False)
        )
        self.commit()
        return count
