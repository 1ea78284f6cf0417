"""
Calendar activities router, including .ics and Google Calendar exports.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.calendar_export import ics_filename
from helpers.pagination import PaginationLimit
from repositories.database import get_db
from services.activity_service import ActivityService

router = APIRouter(prefix="/activities", tags=["activities"])

ICS_MEDIA_TYPE = "text/calendar; charset=utf-8"


@router.get("", response_model=list[schemas.Activity])
def list_activities(
    section: Optional[str] = None,
    limit: PaginationLimit = 100,
    db: Session = Depends(get_db),
):
    """Upcoming activities; group-wide ones are included in every section."""
    return ActivityService.list_upcoming(db, section=section, limit=limit)


@router.post(
    "", response_model=schemas.Activity, status_code=status.HTTP_201_CREATED
)
def create_activity(
    payload: schemas.ActivityCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_staff_user),
):
    return ActivityService.create_activity(db, current_user, payload)


@router.get("/calendar.ics")
def export_calendar_feed(
    section: Optional[str] = None,
    db: Session = Depends(get_db),
) -> Response:
    """Subscribable iCalendar feed of upcoming activities."""
    content = ActivityService.export_feed(db, section=section)
    filename = ics_filename(f"osyris {section}") if section else "osyris.ics"
    return Response(
        content=content,
        media_type=ICS_MEDIA_TYPE,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.get("/{activity_id}", response_model=schemas.Activity)
def get_activity(activity_id: int, db: Session = Depends(get_db)):
    return ActivityService.get_activity(db, activity_id)


@router.get("/{activity_id}/calendar.ics")
def download_activity_ics(
    activity_id: int, db: Session = Depends(get_db)
) -> Response:
    """Download one activity as an .ics file."""
    filename, content = ActivityService.export_ics(db, activity_id)
    return Response(
        content=content,
        media_type=ICS_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{activity_id}/google-calendar", response_model=schemas.GoogleCalendarLink
)
def get_google_calendar_link(activity_id: int, db: Session = Depends(get_db)):
    return schemas.GoogleCalendarLink(
        url=ActivityService.google_calendar_url(db, activity_id)
    )
