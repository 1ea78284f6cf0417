"""
Calendar activities and their calendar exports.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from helpers.calendar_export import (
    CalendarEvent,
    build_google_calendar_url,
    build_ics,
    build_ics_calendar,
    ics_filename,
)
from models.exceptions import ActivityNotFoundException
from repositories.activity_repository import ActivityRepository


class ActivityService:
    """Service for calendar activity operations."""

    @staticmethod
    def list_upcoming(
        db: Session,
        section: Optional[str] = None,
        start: Optional[date] = None,
        limit: int = 100,
    ) -> List[db_models.Activity]:
        """Activities from ``start`` (today by default), optionally for one section."""
        return ActivityRepository(db).list_from(
            start=start or date.today(), section=section, limit=limit
        )

    @staticmethod
    def get_activity(db: Session, activity_id: int) -> db_models.Activity:
        activity = ActivityRepository(db).get_by_id(activity_id)
        if activity is None:
            raise ActivityNotFoundException(activity_id)
        return activity

    @staticmethod
    def create_activity(
        db: Session, creator: db_models.User, payload: schemas.ActivityCreate
    ) -> db_models.Activity:
        activity = db_models.Activity(
            **payload.model_dump(),
            created_by=creator.id,
        )
        return ActivityRepository(db).create(activity)

    @classmethod
    def export_ics(cls, db: Session, activity_id: int) -> tuple[str, str]:
        """
        Render one activity as an .ics file.

        Returns:
            (filename, ics_content)
        """
        activity = cls.get_activity(db, activity_id)
        event = CalendarEvent.from_activity(activity)
        return ics_filename(activity.title), build_ics(event)

    @classmethod
    def google_calendar_url(cls, db: Session, activity_id: int) -> str:
        activity = cls.get_activity(db, activity_id)
        return build_google_calendar_url(CalendarEvent.from_activity(activity))

    @classmethod
    def export_feed(cls, db: Session, section: Optional[str] = None) -> str:
        """Upcoming activities as a single VCALENDAR feed."""
        activities = cls.list_upcoming(db, section=section, limit=500)
        return build_ics_calendar(
            CalendarEvent.from_activity(activity) for activity in activities
        )
