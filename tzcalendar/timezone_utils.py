"""
Timezone and date/time utilities for the calendar backend.

Events are stored as naive wall-clock datetimes local to their calendar.
Conversions between calendars go through an absolute instant: the wall
clock is localized in the source zone and re-expressed in the target zone.
"""

from datetime import datetime, date, time, timedelta
from typing import Union

import pytz
from pytz.tzinfo import BaseTzInfo

from .errors import InvalidFormatError


DateTimeLike = Union[datetime, str]
DateLike = Union[date, str]
TimeLike = Union[time, str]


def resolve_timezone(zone_id: Union[str, BaseTzInfo]) -> BaseTzInfo:
    """
    Resolve a timezone identifier to a pytz timezone object.

    Args:
        zone_id: IANA zone name (e.g. "Europe/Amsterdam") or a pytz zone.

    Returns:
        pytz timezone object.

    Raises:
        InvalidFormatError: if the zone id cannot be resolved.
    """
    if isinstance(zone_id, BaseTzInfo) or zone_id is pytz.UTC:
        return zone_id
    if not isinstance(zone_id, str) or not zone_id.strip():
        raise InvalidFormatError(f"Invalid timezone: {zone_id!r}")
    try:
        return pytz.timezone(zone_id.strip())
    except pytz.UnknownTimeZoneError:
        raise InvalidFormatError(f"Unknown timezone: {zone_id}")


def zone_name(tz) -> str:
    """Get the IANA name of a pytz timezone."""
    return getattr(tz, 'zone', None) or str(tz)


def convert_wall_clock(dt: datetime, from_tz, to_tz) -> datetime:
    """
    Re-express a naive wall-clock datetime from one timezone in another.

    Args:
        dt: naive datetime, local to from_tz.
        from_tz: pytz timezone the wall clock belongs to.
        to_tz: pytz timezone to express the same instant in.

    Returns:
        A naive datetime, local to to_tz.
    """
    if from_tz is to_tz:
        return dt
    return to_utc_instant(dt, from_tz).astimezone(to_tz).replace(tzinfo=None)


def to_utc_instant(dt: datetime, tz) -> datetime:
    """Convert a naive wall-clock datetime in tz to an aware UTC datetime."""
    return tz.localize(dt).astimezone(pytz.UTC)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def days_between(first: date, second: date) -> timedelta:
    """Midnight-to-midnight delta from first to second."""
    return start_of_day(second) - start_of_day(first)


# ==================== Parsing ====================

def parse_datetime(value: DateTimeLike) -> datetime:
    """
    Parse a wall-clock datetime.

    Accepts naive datetime objects or ISO strings such as "2025-10-07T13:35".

    Raises:
        InvalidFormatError: for aware datetimes, dates without a time, or
            strings that are not ISO datetimes.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            raise InvalidFormatError(f"Expected a wall-clock datetime, got aware {value.isoformat()}")
        return value
    if isinstance(value, str):
        text = value.strip()
        if 'T' not in text and ' ' not in text:
            raise InvalidFormatError(f"Invalid date-time: {value!r}")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidFormatError(f"Invalid date-time: {value!r}")
        if parsed.tzinfo is not None:
            raise InvalidFormatError(f"Expected a wall-clock date-time, got {value!r}")
        return parsed
    raise InvalidFormatError(f"Invalid date-time: {value!r}")


def parse_date(value: DateLike) -> date:
    """Parse a calendar date from a date object or an ISO string ("2025-10-07")."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise InvalidFormatError(f"Invalid date: {value!r}")
    raise InvalidFormatError(f"Invalid date: {value!r}")


def parse_time(value: TimeLike) -> time:
    """Parse a time of day from a time object or an ISO string ("13:35")."""
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        try:
            parsed = time.fromisoformat(value.strip())
        except ValueError:
            raise InvalidFormatError(f"Invalid time: {value!r}")
        if parsed.tzinfo is not None:
            raise InvalidFormatError(f"Expected a wall-clock time, got {value!r}")
        return parsed
    raise InvalidFormatError(f"Invalid time: {value!r}")
