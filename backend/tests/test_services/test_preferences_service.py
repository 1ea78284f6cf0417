"""Tests for PreferencesService and the delivery-window rules."""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.notification_types import NotificationFrequency, NotificationKind
from services.preferences_service import PreferencesService

# 2024-06-12 is a Wednesday and 2024-06-15 a Saturday; Madrid is UTC+2 in June
WEDNESDAY_NOON_MADRID = datetime(2024, 6, 12, 10, 0, tzinfo=timezone.utc)
WEDNESDAY_NIGHT_MADRID = datetime(2024, 6, 12, 20, 0, tzinfo=timezone.utc)
SATURDAY_0930_MADRID = datetime(2024, 6, 15, 7, 30, tzinfo=timezone.utc)
SATURDAY_1030_MADRID = datetime(2024, 6, 15, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def preferences(
    db_session: Session, family_user: db_models.User
) -> db_models.NotificationPreferences:
    return PreferencesService.get_preferences(db_session, family_user.id)


class TestUpdatePreferences:
    def test_partial_update_leaves_other_fields(
        self, db_session: Session, family_user: db_models.User
    ) -> None:
        changes = schemas.NotificationPreferencesUpdate(
            quiet_hours_start="08:00", frequency=NotificationFrequency.DAILY
        )

        updated = PreferencesService.update_preferences(
            db_session, family_user.id, changes
        )

        assert updated.quiet_hours_start == "08:00"
        assert updated.quiet_hours_end == "21:00"
        assert updated.frequency == NotificationFrequency.DAILY
        assert updated.email_enabled is True

    def test_null_is_ignored_except_for_vacation_dates(
        self, db_session: Session, family_user: db_models.User
    ) -> None:
        PreferencesService.update_preferences(
            db_session,
            family_user.id,
            schemas.NotificationPreferencesUpdate(
                vacation_enabled=True, vacation_start=date(2024, 8, 1)
            ),
        )

        updated = PreferencesService.update_preferences(
            db_session,
            family_user.id,
            schemas.NotificationPreferencesUpdate.model_validate(
                {"email_enabled": None, "vacation_start": None}
            ),
        )

        assert updated.email_enabled is True
        assert updated.vacation_start is None
        assert updated.vacation_enabled is True

    def test_rejects_malformed_times(self) -> None:
        with pytest.raises(ValueError):
            schemas.NotificationPreferencesUpdate(quiet_hours_start="9am")


class TestShouldDeliver:
    def test_inside_weekday_window(
        self, preferences: db_models.NotificationPreferences
    ) -> None:
        assert PreferencesService.should_deliver(
            preferences, NotificationKind.INFORMATIVE, WEDNESDAY_NOON_MADRID
        )

    def test_outside_weekday_window(
        self, preferences: db_models.NotificationPreferences
    ) -> None:
        assert not PreferencesService.should_deliver(
            preferences, NotificationKind.IMPORTANT, WEDNESDAY_NIGHT_MADRID
        )

    def test_urgent_always_delivered(
        self, preferences: db_models.NotificationPreferences
    ) -> None:
        preferences.do_not_disturb = True
        assert PreferencesService.should_deliver(
            preferences, NotificationKind.URGENT, WEDNESDAY_NIGHT_MADRID
        )

    def test_do_not_disturb(
        self, preferences: db_models.NotificationPreferences
    ) -> None:
        preferences.do_not_disturb = True
        assert not PreferencesService.should_deliver(
            preferences, NotificationKind.REMINDER, WEDNESDAY_NOON_MADRID
        )

    def test_weekend_schedule(
        self, preferences: db_models.NotificationPreferences
    ) -> None:
        assert PreferencesService.should_deliver(
            preferences, NotificationKind.INFORMATIVE, SATURDAY_0930_MADRID
        )

        preferences.weekend_schedule_enabled = True

        assert not PreferencesService.should_deliver(
            preferences, NotificationKind.INFORMATIVE, SATURDAY_0930_MADRID
        )
        assert PreferencesService.should_deliver(
            preferences, NotificationKind.INFORMATIVE, SATURDAY_1030_MADRID
        )

    def test_window_crossing_midnight(
        self, preferences: db_models.NotificationPreferences
    ) -> None:
        preferences.quiet_hours_start = "21:00"
        preferences.quiet_hours_end = "08:00"
        assert PreferencesService.should_deliver(
            preferences, NotificationKind.INFORMATIVE, WEDNESDAY_NIGHT_MADRID
        )
        assert not PreferencesService.should_deliver(
            preferences, NotificationKind.INFORMATIVE, WEDNESDAY_NOON_MADRID
        )


class TestVacation:
    @pytest.mark.parametrize(
        "start,end,expected",
        [
            (None, None, True),
            (date(2024, 6, 1), date(2024, 6, 30), True),
            (date(2024, 6, 13), None, False),
            (None, date(2024, 6, 11), False),
        ],
    )
    def test_bounds(
        self,
        preferences: db_models.NotificationPreferences,
        start: date | None,
        end: date | None,
        expected: bool,
    ) -> None:
        preferences.vacation_enabled = True
        preferences.vacation_start = start
        preferences.vacation_end = end
        assert PreferencesService.is_on_vacation(preferences, date(2024, 6, 12)) is (
            expected
        )

    def test_vacation_holds_back_delivery(
        self, preferences: db_models.NotificationPreferences
    ) -> None:
        preferences.vacation_enabled = True
        assert not PreferencesService.should_deliver(
            preferences, NotificationKind.IMPORTANT, WEDNESDAY_NOON_MADRID
        )

    def test_disabled_vacation_ignores_dates(
        self, preferences: db_models.NotificationPreferences
    ) -> None:
        preferences.vacation_start = date(2024, 1, 1)
        assert not PreferencesService.is_on_vacation(preferences, date(2024, 6, 12))
