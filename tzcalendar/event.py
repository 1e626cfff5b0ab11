"""
Event value types for the calendar backend.

An Event is an immutable snapshot. Its identity is the (subject, start, end)
triple: two events with the same triple are equal and hash the same even if
location, description or status differ. Stores use that identity to decide
whether an event already exists.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from .errors import InvalidFormatError


class EventStatus(Enum):
    """Visibility of an event."""
    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def parse(cls, value) -> 'EventStatus':
        """Parse a status from an EventStatus or a case-insensitive name."""
        if isinstance(value, EventStatus):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise InvalidFormatError(f"Invalid event status: {value!r}")


class EventProperty(Enum):
    """Editable properties of an event."""
    SUBJECT = "subject"
    START = "start"
    END = "end"
    END_TIME = "end_time"  # end time of day, keeping the end date
    DESCRIPTION = "description"
    LOCATION = "location"
    STATUS = "status"

    @classmethod
    def parse(cls, value) -> 'EventProperty':
        if isinstance(value, EventProperty):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise InvalidFormatError(f"Invalid event property: {value!r}")

    @property
    def changes_identity(self) -> bool:
        return self in IDENTITY_PROPERTIES


IDENTITY_PROPERTIES = frozenset({
    EventProperty.SUBJECT,
    EventProperty.START,
    EventProperty.END,
    EventProperty.END_TIME,
})


class Weekday(Enum):
    """Days of the week, valued like date.weekday() (Monday = 0)."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def of(cls, day: date) -> 'Weekday':
        return cls(day.weekday())

    @property
    def code(self) -> str:
        return WEEKDAY_CODES[self.value]


# One-letter codes: Monday..Sunday
WEEKDAY_CODES = "MTWRFSU"


def parse_weekdays(value) -> frozenset:
    """
    Parse a weekday pattern.

    Args:
        value: a string of one-letter codes ("MWF", "TR", "SU") or an
            iterable of Weekday members.

    Returns:
        frozenset of Weekday.

    Raises:
        InvalidFormatError: for unknown codes or an empty pattern.
    """
    if isinstance(value, str):
        days = set()
        for code in value.strip().upper():
            index = WEEKDAY_CODES.find(code)
            if index < 0:
                raise InvalidFormatError(f"Invalid weekday code {code!r} in {value!r}")
            days.add(Weekday(index))
    else:
        days = set()
        for day in value:
            if not isinstance(day, Weekday):
                raise InvalidFormatError(f"Invalid weekday: {day!r}")
            days.add(day)
    if not days:
        raise InvalidFormatError("Weekday pattern must not be empty")
    return frozenset(days)


def format_weekdays(weekdays: Iterable[Weekday]) -> str:
    """Format a weekday set back to its one-letter codes, Monday first."""
    return "".join(day.code for day in sorted(weekdays, key=lambda d: d.value))


class CalendarStatus(Enum):
    """Availability of a calendar at an instant."""
    BUSY = "busy"
    AVAILABLE = "available"


@dataclass(frozen=True, eq=False)
class Event:
    """
    Immutable calendar event.

    start and end are naive wall-clock datetimes in the owning calendar's
    timezone.
    """
    subject: str
    start: datetime
    end: datetime
    location: Optional[str] = None
    description: Optional[str] = None
    status: Optional[EventStatus] = None

    @property
    def key(self) -> tuple:
        """Identity key (subject, start, end)."""
        return (self.subject, self.start, self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_single_day(self) -> bool:
        """True if the event starts and ends on the same local date."""
        return self.start.date() == self.end.date()

    def with_changes(self, **changes) -> 'Event':
        """Return a copy of this event with the given fields replaced."""
        return replace(self, **changes)

    def shifted(self, delta: timedelta) -> 'Event':
        return replace(self, start=self.start + delta, end=self.end + delta)

    def __hash__(self):
        return hash(self.key)

    def __eq__(self, other):
        if isinstance(other, Event):
            return self.key == other.key
        return NotImplemented

    def __repr__(self):
        return f"Event(subject={self.subject!r}, start={self.start.isoformat()}, end={self.end.isoformat()})"


def sort_key(event: Event) -> tuple:
    """Ordering used for every event snapshot: start, then end, then subject."""
    return (event.start, event.end, event.subject)
