"""Time helpers.

Timestamps are stored in UTC. Anything that depends on a calendar day
(streaks, weekends, morning/evening windows, week boundaries) is computed in
the configured local timezone.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from appreciatemate.core.config import settings


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.local_timezone)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    return datetime.now(local_tz())


def to_local(dt: datetime) -> datetime:
    """Convert a stored timestamp to local time. Naive values are UTC (SQLite)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(local_tz())


def to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def start_of_week(now: datetime) -> datetime:
    """Most recent Sunday at 00:00 local time."""
    local = to_local(now)
    days_since_sunday = (local.weekday() + 1) % 7
    sunday = local.date() - timedelta(days=days_since_sunday)
    return datetime(sunday.year, sunday.month, sunday.day, tzinfo=local_tz())


def calendar_days_between(later: datetime, earlier: datetime) -> int:
    """Whole local calendar days from `earlier` to `later`."""
    return (to_local(later).date() - to_local(earlier).date()).days
