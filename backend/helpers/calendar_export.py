"""
Calendar export: Google Calendar links and iCalendar (.ics) text.

Activities carry a free-form display time ("17:00", "17:00 - 19:00",
"10:00-12:00"). These helpers turn it into a start/end pair on the activity's
date and render the event. Times are floating local times (no TZID), which is
how calendar apps treat the group's schedule.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable, Optional
from urllib.parse import urlencode

from models.config import settings

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"
DEFAULT_TIME_RANGE = ("09:00", "10:00")
DEFAULT_DURATION_HOURS = 2

_RANGE_PATTERN = re.compile(r"(\d{1,2}):(\d{2})\s*[-–]\s*(\d{1,2}):(\d{2})")
_SINGLE_PATTERN = re.compile(r"(\d{1,2}):(\d{2})")


@dataclass
class CalendarEvent:
    title: str
    date: str  # YYYY-MM-DD
    time: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    section: Optional[str] = None
    uid: Optional[str] = None

    @classmethod
    def from_activity(cls, activity) -> "CalendarEvent":
        """Build an event from an Activity row or schema."""
        activity_date = activity.date
        if isinstance(activity_date, date):
            activity_date = activity_date.isoformat()
        return cls(
            title=activity.title,
            date=activity_date,
            time=activity.time,
            location=activity.location,
            description=activity.description,
            section=activity.section,
            uid=f"activity-{activity.id}@{settings.CALENDAR_UID_DOMAIN}",
        )


def parse_time_range(time: Optional[str]) -> tuple[str, str]:
    """
    Parse a display time into ("HH:MM", "HH:MM").

    A range uses a hyphen or en dash with optional spaces. A single time gets
    a two hour window (the hour wraps past midnight). Anything else falls
    back to 09:00-10:00.
    """
    if not time:
        return DEFAULT_TIME_RANGE

    match = _RANGE_PATTERN.search(time)
    if match:
        start_h, start_m, end_h, end_m = match.groups()
        return f"{start_h.zfill(2)}:{start_m}", f"{end_h.zfill(2)}:{end_m}"

    match = _SINGLE_PATTERN.search(time)
    if match:
        start_h, start_m = match.groups()
        end_hour = (int(start_h) + DEFAULT_DURATION_HOURS) % 24
        return f"{start_h.zfill(2)}:{start_m}", f"{end_hour:02d}:{start_m}"

    return DEFAULT_TIME_RANGE


def format_calendar_datetime(event_date: str, time: str) -> str:
    """'2024-06-15', '17:00' -> '20240615T170000'."""
    year, month, day = event_date.split("-")
    hours, minutes = time.split(":")
    return f"{year}{month}{day}T{hours}{minutes}00"


def escape_ics(text: str) -> str:
    """Escape the characters iCalendar reserves in text values."""
    return (
        text.replace("\r", "")
        .replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def build_description(event: CalendarEvent) -> str:
    description = event.description or ""
    if event.section:
        description = f"[{event.section}] {description}".strip()
    return description


def build_google_calendar_url(event: CalendarEvent) -> str:
    """Google Calendar "create event" link pre-filled with the event."""
    start_time, end_time = parse_time_range(event.time)
    start = format_calendar_datetime(event.date, start_time)
    end = format_calendar_datetime(event.date, end_time)

    params = {
        "action": "TEMPLATE",
        "text": event.title,
        "dates": f"{start}/{end}",
        "details": build_description(event),
        "location": event.location or "",
        "trp": "false",
    }
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"


def build_uid(event: CalendarEvent, now: datetime) -> str:
    slug = re.sub(r"\s+", "-", event.title).lower()
    timestamp_ms = int(now.timestamp() * 1000)
    return f"{event.date}-{slug}-{timestamp_ms}@{settings.CALENDAR_UID_DOMAIN}"


def _vevent_lines(
    event: CalendarEvent, now: datetime, uid: Optional[str] = None
) -> list[str]:
    start_time, end_time = parse_time_range(event.time)
    description = build_description(event)
    dtstamp = now.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

    lines = [
        "BEGIN:VEVENT",
        f"UID:{uid or event.uid or build_uid(event, now)}",
        f"DTSTAMP:{dtstamp}",
        f"DTSTART:{format_calendar_datetime(event.date, start_time)}",
        f"DTEND:{format_calendar_datetime(event.date, end_time)}",
        f"SUMMARY:{escape_ics(event.title)}",
    ]
    if description:
        lines.append(f"DESCRIPTION:{escape_ics(description)}")
    if event.location:
        lines.append(f"LOCATION:{escape_ics(event.location)}")
    lines.append("END:VEVENT")
    return lines


def _wrap_calendar(vevent_lines: list[str]) -> str:
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{settings.CALENDAR_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        *vevent_lines,
        "END:VCALENDAR",
    ]
    return "\r\n".join(line for line in lines if line)


def build_ics(
    event: CalendarEvent,
    now: Optional[datetime] = None,
    uid: Optional[str] = None,
) -> str:
    """
    Render a single-event VCALENDAR with CRLF line endings.

    Args:
        event: Event to export
        now: DTSTAMP and UID timestamp (defaults to the current UTC time)
        uid: Explicit UID (defaults to date-slug-millis@domain)
    """
    now = now or datetime.now(timezone.utc)
    return _wrap_calendar(_vevent_lines(event, now, uid))


def build_ics_calendar(
    events: Iterable[CalendarEvent], now: Optional[datetime] = None
) -> str:
    """Render several events into one VCALENDAR feed."""
    now = now or datetime.now(timezone.utc)
    lines: list[str] = []
    for event in events:
        lines.extend(_vevent_lines(event, now))
    return _wrap_calendar(lines)


def ics_filename(title: str) -> str:
    """'Reunión de padres' -> 'reunin-de-padres.ics'."""
    cleaned = re.sub(r"[^a-zA-Z0-9\s]", "", title)
    slug = re.sub(r"\s+", "-", cleaned).lower()
    return f"{slug or 'actividad'}.ics"
