"""Tests for ActivityService."""

from datetime import date, timedelta

import pytest
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import ActivityNotFoundException
from services.activity_service import ActivityService


@pytest.fixture
def make_activity(db_session: Session):
    def factory(title: str, days_ahead: int = 7, **fields) -> db_models.Activity:
        activity = db_models.Activity(
            title=title, date=date.today() + timedelta(days=days_ahead), **fields
        )
        db_session.add(activity)
        db_session.commit()
        db_session.refresh(activity)
        return activity

    return factory


class TestListUpcoming:
    def test_skips_past_activities(self, db_session: Session, make_activity) -> None:
        make_activity("Ya pasó", days_ahead=-3)
        upcoming = make_activity("Excursión", days_ahead=2)

        assert ActivityService.list_upcoming(db_session) == [upcoming]

    def test_section_includes_group_wide(
        self, db_session: Session, make_activity
    ) -> None:
        group = make_activity("Festival de grupo", days_ahead=1)
        manada = make_activity("Cacería", days_ahead=2, section="manada")
        make_activity("Campamento tropa", days_ahead=3, section="tropa")

        result = ActivityService.list_upcoming(db_session, section="manada")

        assert result == [group, manada]

    def test_explicit_start(self, db_session: Session, make_activity) -> None:
        past = make_activity("Pasada", days_ahead=-10)
        result = ActivityService.list_upcoming(
            db_session, start=date.today() - timedelta(days=30)
        )
        assert past in result


class TestGetAndCreate:
    def test_missing_activity(self, db_session: Session) -> None:
        with pytest.raises(ActivityNotFoundException):
            ActivityService.get_activity(db_session, 999)

    def test_create_records_creator(
        self, db_session: Session, monitor_user: db_models.User
    ) -> None:
        payload = schemas.ActivityCreate(
            title="Reunión de padres",
            date=date(2030, 3, 14),
            time="18:00 - 19:30",
            section="manada",
        )

        activity = ActivityService.create_activity(db_session, monitor_user, payload)

        assert activity.id is not None
        assert activity.created_by == monitor_user.id
        assert activity.time == "18:00 - 19:30"


class TestExports:
    def test_export_ics(self, db_session: Session, make_activity) -> None:
        activity = make_activity(
            "Reunión de padres", time="17:00 - 19:00", location="Local"
        )

        filename, content = ActivityService.export_ics(db_session, activity.id)

        stamp = activity.date.strftime("%Y%m%d")
        assert filename == "reunin-de-padres.ics"
        assert f"DTSTART:{stamp}T170000" in content
        assert f"UID:activity-{activity.id}@grupoosyris.es" in content

    def test_export_ics_missing(self, db_session: Session) -> None:
        with pytest.raises(ActivityNotFoundException):
            ActivityService.export_ics(db_session, 42)

    def test_google_calendar_url(self, db_session: Session, make_activity) -> None:
        activity = make_activity("Excursión", section="manada")
        url = ActivityService.google_calendar_url(db_session, activity.id)
        assert url.startswith("https://calendar.google.com/calendar/render?")
        assert "action=TEMPLATE" in url

    def test_feed_filters_by_section(
        self, db_session: Session, make_activity
    ) -> None:
        make_activity("Cacería", section="manada")
        make_activity("Campamento tropa", section="tropa")

        feed = ActivityService.export_feed(db_session, section="manada")

        assert feed.count("BEGIN:VEVENT") == 1
        assert "SUMMARY:Cacería" in feed
