"""
Notification preferences: storage and the delivery-window rules.

The in-app notification list always receives every notification. The rules in
``should_deliver`` decide whether an out-of-band channel (email, SMS, push)
may be used right now or must wait.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.time_utils import ensure_utc, is_within_window, parse_hhmm, utc_now
from models.config import settings
from models.notification_types import NotificationKind
from repositories.notification_preferences_repository import (
    NotificationPreferencesRepository,
)

WEEKEND_DAYS = (5, 6)


class PreferencesService:
    """Service for per-family notification preferences."""

    @staticmethod
    def get_preferences(
        db: Session, family_member_id: int
    ) -> db_models.NotificationPreferences:
        """Get preferences, creating them with defaults on first read."""
        return NotificationPreferencesRepository(db).get_or_create(family_member_id)

    @staticmethod
    def update_preferences(
        db: Session,
        family_member_id: int,
        changes: schemas.NotificationPreferencesUpdate,
    ) -> db_models.NotificationPreferences:
        """
        Apply a partial update.

        Only fields present in the request body are written; an explicit
        ``null`` clears the vacation dates but is ignored for every other
        field.

        Args:
            db: Database session
            family_member_id: Owner ID
            changes: Fields to change

        Returns:
            Updated preferences
        """
        repo = NotificationPreferencesRepository(db)
        preferences = repo.get_or_create(family_member_id)

        for field, value in changes.model_dump(exclude_unset=True).items():
            if value is None and field not in ("vacation_start", "vacation_end"):
                continue
            setattr(preferences, field, value)

        return repo.update(preferences)

    @staticmethod
    def is_on_vacation(
        preferences: db_models.NotificationPreferences, today: date
    ) -> bool:
        """Vacation is active when enabled and ``today`` is inside the optional bounds."""
        if not preferences.vacation_enabled:
            return False
        if preferences.vacation_start and today < preferences.vacation_start:
            return False
        if preferences.vacation_end and today > preferences.vacation_end:
            return False
        return True

    @staticmethod
    def is_within_delivery_window(
        preferences: db_models.NotificationPreferences, local_moment: datetime
    ) -> bool:
        """
        Check the local time against the weekday or weekend window.

        Args:
            preferences: Member preferences
            local_moment: Datetime already converted to the group's time zone

        Returns:
            True when inside [start, end), wrapping past midnight
        """
        if (
            preferences.weekend_schedule_enabled
            and local_moment.weekday() in WEEKEND_DAYS
        ):
            start, end = preferences.weekend_start, preferences.weekend_end
        else:
            start, end = preferences.quiet_hours_start, preferences.quiet_hours_end

        return is_within_window(
            local_moment.time().replace(second=0, microsecond=0),
            parse_hhmm(start),
            parse_hhmm(end),
        )

    @classmethod
    def should_deliver(
        cls,
        preferences: db_models.NotificationPreferences,
        kind: NotificationKind,
        at: datetime | None = None,
    ) -> bool:
        """
        Decide whether an out-of-band delivery may happen at ``at``.

        Urgent notifications always go out. Do-not-disturb and an active
        vacation hold back everything else; otherwise the delivery window
        decides.
        """
        if kind == NotificationKind.URGENT:
            return True

        moment = ensure_utc(at or utc_now()).astimezone(
            ZoneInfo(settings.NOTIFICATION_TIMEZONE)
        )
        if preferences.do_not_disturb:
            return False
        if cls.is_on_vacation(preferences, moment.date()):
            return False
        return cls.is_within_delivery_window(preferences, moment)
