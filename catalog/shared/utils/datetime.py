"""
UTC datetime and calendar-window utilities.

All datetime values stored by the data layer are timezone-aware UTC.
Calendar days (analytics windows, daily buckets) are interpreted in the
store timezone and converted to UTC instants at the boundary.
"""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def parse_calendar_date(value: date | datetime | str) -> date:
    """
    Return a calendar date from a date, datetime or 'YYYY-MM-DD' string.

    Raises:
        ValueError: If a string is not an ISO calendar date.
        TypeError: For any other input type.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise TypeError(f"Expected date or 'YYYY-MM-DD' string, got {type(value).__name__}")


def day_bounds(start: date, end: date, tz: str = "UTC") -> tuple[datetime, datetime]:
    """
    Return the UTC instants enclosing calendar days start..end (inclusive) in tz.

    The upper bound is the last microsecond of `end`, so the window can be
    expressed as created_at >= lower and created_at <= upper.

    Args:
        start: First calendar day.
        end: Last calendar day.
        tz: IANA timezone the calendar days belong to.

    Returns:
        (lower, upper) UTC-aware datetimes
    """
    zone = ZoneInfo(tz)
    lower = datetime.combine(start, time.min, tzinfo=zone)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=zone) - timedelta(
        microseconds=1
    )
    return lower.astimezone(UTC), upper.astimezone(UTC)


def calendar_today(tz: str = "UTC") -> date:
    """Return today's date in the given timezone."""
    return datetime.now(ZoneInfo(tz)).date()
