"""
Timezone-safe datetime and calendar utilities for ThisDay.

All timestamps are stored in UTC. Entries are filed under a local calendar
date in a configured IANA zone; every function that needs a zone takes it as
an explicit ``tz_name`` argument.
"""

import calendar
from datetime import datetime, date, time, timezone
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.exceptions import InvalidCalendarDateError


def utc_now() -> datetime:
    """
    Return current UTC datetime with timezone info attached.

    Returns:
        datetime: Current UTC datetime (timezone-aware)
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Convert any datetime to UTC.

    If the datetime is naive (no timezone info), it's assumed to be UTC.
    If it has timezone info, it's converted to UTC.

    Example:
        >>> naive_dt = datetime(2024, 1, 1, 12, 0, 0)
        >>> ensure_utc(naive_dt).tzinfo
        datetime.timezone.utc
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Convert UTC datetime to a local timezone.

    Args:
        dt: UTC datetime
        tz_name: IANA timezone name (e.g., "Asia/Kolkata"). Defaults to "UTC".

    Example:
        >>> utc_dt = datetime(2024, 1, 1, 8, 0, 0, tzinfo=timezone.utc)
        >>> to_local(utc_dt, "America/Los_Angeles").hour
        0
    """
    if tz_name is None:
        tz_name = "UTC"

    return ensure_utc(dt).astimezone(ZoneInfo(tz_name))


def to_local_date(dt: datetime, tz_name: Optional[str] = None) -> date:
    """
    Project an absolute instant onto the local calendar date of a zone.

    The same UTC moment represents different calendar dates in different
    timezones.

    Example:
        >>> # 00:30 IST on Mar 9 is 19:00 UTC on Mar 8
        >>> to_local_date(datetime(2025, 3, 8, 19, 0, tzinfo=timezone.utc), "Asia/Kolkata")
        datetime.date(2025, 3, 9)
    """
    return to_local(dt, tz_name).date()


def local_today(tz_name: str) -> date:
    """Return today's calendar date in the given zone."""
    return to_local_date(utc_now(), tz_name)


def validate_calendar_date(year: int, month: int, day: int) -> date:
    """
    Build a calendar date from plain integers, rejecting impossible values.

    Raises:
        InvalidCalendarDateError: month outside 1-12 or a day the month does
            not have (e.g. Feb 30). Values are never clamped or rolled over.
    """
    if not 1 <= month <= 12:
        raise InvalidCalendarDateError(f"Month must be between 1 and 12, got {month}")
    try:
        return date(year, month, day)
    except (ValueError, OverflowError, TypeError) as exc:
        raise InvalidCalendarDateError(
            f"Invalid calendar date {year}-{month}-{day}: {exc}"
        ) from exc


def validate_calendar_month(year: int, month: int) -> date:
    """Validate a (year, month) pair and return the first day of that month."""
    return validate_calendar_date(year, month, 1)


def last_day_of_month(year: int, month: int) -> date:
    """Return the last calendar day of a validated month."""
    first = validate_calendar_month(year, month)
    return first.replace(day=calendar.monthrange(year, month)[1])


def start_of_local_day(user_date: date, tz_name: str = "UTC") -> datetime:
    """
    Get the UTC datetime representing the start of a local day.

    Example:
        >>> start_of_local_day(date(2024, 1, 1), "America/Los_Angeles")
        datetime.datetime(2024, 1, 1, 8, 0, tzinfo=datetime.timezone.utc)
    """
    local_midnight = datetime.combine(user_date, time.min).replace(tzinfo=ZoneInfo(tz_name))
    return local_midnight.astimezone(timezone.utc)


def end_of_local_day(user_date: date, tz_name: str = "UTC") -> datetime:
    """
    Get the UTC datetime representing the end of a local day.

    The end is the last representable local instant (23:59:59.999999), so a
    [start, end] filter is inclusive on both sides.
    """
    local_end = datetime.combine(user_date, time.max).replace(tzinfo=ZoneInfo(tz_name))
    return local_end.astimezone(timezone.utc)


def day_bounds(year: int, month: int, day: int, tz_name: str) -> Tuple[datetime, datetime]:
    """
    UTC instants of the first and last local instant of a calendar day.

    Example:
        >>> day_bounds(2025, 3, 9, "Asia/Kolkata")[0]
        datetime.datetime(2025, 3, 8, 18, 30, tzinfo=datetime.timezone.utc)
    """
    target = validate_calendar_date(year, month, day)
    return _utc_bounds(target, target, tz_name)


def month_bounds(year: int, month: int, tz_name: str) -> Tuple[datetime, datetime]:
    """UTC instants spanning the first through the last local day of a month."""
    first = validate_calendar_month(year, month)
    last = last_day_of_month(year, month)
    return _utc_bounds(first, last, tz_name)


def _utc_bounds(first: date, last: date, tz_name: str) -> Tuple[datetime, datetime]:
    # Local days at the edges of the datetime range have no UTC representation
    try:
        return start_of_local_day(first, tz_name), end_of_local_day(last, tz_name)
    except OverflowError as exc:
        raise InvalidCalendarDateError(
            f"Calendar range {first.isoformat()}..{last.isoformat()} is not representable in UTC for {tz_name}"
        ) from exc


def day_month_key(value: date) -> str:
    """Year-independent ``MM-DD`` key of a calendar date."""
    return f"{value.month:02d}-{value.day:02d}"


def serialize_datetime(dt: Optional[datetime]) -> Optional[str]:
    """
    Convert datetime to ISO8601 UTC string with 'Z' suffix.

    Example:
        >>> serialize_datetime(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))
        '2024-01-01T12:00:00Z'
    """
    if dt is None:
        return None

    iso_string = ensure_utc(dt).isoformat()
    if iso_string.endswith('+00:00'):
        iso_string = iso_string[:-6] + 'Z'
    return iso_string


def parse_iso_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse ISO8601 string to UTC datetime.

    Handles both string and datetime inputs. If datetime is passed,
    ensures it's converted to UTC.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)

    dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
    return ensure_utc(dt)


def validate_timezone(tz_name: str) -> bool:
    """
    Validate that a timezone string is a valid IANA timezone.

    Example:
        >>> validate_timezone("Asia/Kolkata")
        True
        >>> validate_timezone("Invalid/Timezone")
        False
    """
    try:
        ZoneInfo(tz_name)
        return True
    except (ZoneInfoNotFoundError, ValueError):
        return False
