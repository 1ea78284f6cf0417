"""Tests for FamilyNotificationRepository."""

from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.notification_types import (
    NotificationCategory,
    NotificationKind,
    NotificationPriority,
    NotificationState,
)
from repositories.family_notification_repository import FamilyNotificationRepository


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TestListForMember:
    """Listing order, filters and expiry."""

    def test_orders_by_priority_then_newest(
        self, db_session: Session, family_user: db_models.User, make_notification
    ) -> None:
        base = _now() - timedelta(hours=3)
        low = make_notification(
            family_user, "low", priority=NotificationPriority.LOW, created_at=base
        )
        old_normal = make_notification(family_user, "old", created_at=base)
        new_normal = make_notification(
            family_user, "new", created_at=base + timedelta(hours=1)
        )
        high = make_notification(
            family_user,
            "high",
            priority=NotificationPriority.HIGH,
            created_at=base - timedelta(days=1),
        )

        result = FamilyNotificationRepository(db_session).list_for_member(
            family_user.id, _now()
        )

        assert [n.id for n in result] == [high.id, new_normal.id, old_normal.id, low.id]

    def test_excludes_expired_and_other_members(
        self,
        db_session: Session,
        family_user: db_models.User,
        other_family_user: db_models.User,
        make_notification,
    ) -> None:
        visible = make_notification(family_user, "visible")
        make_notification(
            family_user, "expired", expires_at=_now() - timedelta(minutes=1)
        )
        future = make_notification(
            family_user, "future", expires_at=_now() + timedelta(days=1)
        )
        make_notification(other_family_user, "not mine")

        result = FamilyNotificationRepository(db_session).list_for_member(
            family_user.id, _now()
        )

        assert {n.id for n in result} == {visible.id, future.id}

    def test_filters(
        self,
        db_session: Session,
        family_user: db_models.User,
        scout: db_models.Scout,
        make_notification,
    ) -> None:
        urgent = make_notification(
            family_user,
            "urgent",
            scout=scout,
            kind=NotificationKind.URGENT,
            category=NotificationCategory.ACTIVITIES,
        )
        make_notification(
            family_user, "read", scout=scout, state=NotificationState.READ
        )
        make_notification(family_user, "no scout", kind=NotificationKind.URGENT)
        repo = FamilyNotificationRepository(db_session)

        by_kind = repo.list_for_member(
            family_user.id, _now(), scout_id=scout.id, kind=NotificationKind.URGENT
        )
        unread = repo.list_for_member(
            family_user.id, _now(), scout_id=scout.id, unread_only=True
        )
        by_category = repo.list_for_member(
            family_user.id, _now(), category=NotificationCategory.ACTIVITIES
        )

        assert [n.id for n in by_kind] == [urgent.id]
        assert [n.id for n in unread] == [urgent.id]
        assert [n.id for n in by_category] == [urgent.id]

    def test_limit(
        self, db_session: Session, family_user: db_models.User, make_notification
    ) -> None:
        for i in range(5):
            make_notification(family_user, f"n{i}")
        result = FamilyNotificationRepository(db_session).list_for_member(
            family_user.id, _now(), limit=2
        )
        assert len(result) == 2


class TestCountsAndBulkUpdates:
    def test_count_unread_ignores_expired(
        self, db_session: Session, family_user: db_models.User, make_notification
    ) -> None:
        make_notification(family_user)
        make_notification(family_user, state=NotificationState.READ)
        make_notification(family_user, expires_at=_now() - timedelta(seconds=5))

        repo = FamilyNotificationRepository(db_session)
        assert repo.count_unread(family_user.id, _now()) == 1

    def test_mark_all_read_only_touches_visible_unread(
        self, db_session: Session, family_user: db_models.User, make_notification
    ) -> None:
        unread = make_notification(family_user)
        archived = make_notification(family_user, state=NotificationState.ARCHIVED)
        expired = make_notification(
            family_user, expires_at=_now() - timedelta(seconds=5)
        )

        affected = FamilyNotificationRepository(db_session).mark_all_read(
            family_user.id, _now()
        )
        db_session.expire_all()

        assert affected == 1
        assert db_session.get(db_models.FamilyNotification, unread.id).state == (
            NotificationState.READ
        )
        assert db_session.get(db_models.FamilyNotification, unread.id).read_at
        assert db_session.get(db_models.FamilyNotification, archived.id).state == (
            NotificationState.ARCHIVED
        )
        assert db_session.get(db_models.FamilyNotification, expired.id).state == (
            NotificationState.UNREAD
        )

    def test_get_for_member_checks_owner(
        self,
        db_session: Session,
        family_user: db_models.User,
        other_family_user: db_models.User,
        make_notification,
    ) -> None:
        notification = make_notification(family_user)
        repo = FamilyNotificationRepository(db_session)

        assert repo.get_for_member(notification.id, family_user.id) is not None
        assert repo.get_for_member(notification.id, other_family_user.id) is None

    def test_delete_expired(
        self, db_session: Session, family_user: db_models.User, make_notification
    ) -> None:
        keep = make_notification(family_user)
        make_notification(family_user, expires_at=_now() - timedelta(days=1))

        deleted = FamilyNotificationRepository(db_session).delete_expired(_now())

        assert deleted == 1
        remaining = db_session.query(db_models.FamilyNotification).all()
        assert [n.id for n in remaining] == [keep.id]
