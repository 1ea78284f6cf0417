"""
Time helpers shared by the notification services and the calendar export.
"""

from datetime import datetime, time, timezone


def utc_now() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Attach UTC to naive datetimes and convert aware ones to UTC.

    SQLite hands back naive datetimes for values stored as UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_hhmm(value: str) -> time:
    """
    Parse a "HH:MM" string.

    Raises:
        ValueError: If the string is not a valid 24h time.
    """
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def is_within_window(moment: time, start: time, end: time) -> bool:
    """
    Check whether ``moment`` falls inside the half-open window [start, end).

    A window whose start is after its end crosses midnight and wraps,
    e.g. 22:00-07:00 contains 23:30 and 06:59 but not 07:00.
    An empty window (start == end) contains nothing.
    """
    if start <= end:
        return start <= moment < end
    return moment >= start or moment < end
