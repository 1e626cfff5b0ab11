"""
Recurrence rules for series of events.

A rule is a weekday pattern plus a termination, which is either
Count(n) (stop after n occurrences) or EndDate(d) (stop after date d).
The rule id only tracks which stored events belong to the rule; it is never
part of an event's identity.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from .errors import InvalidFormatError
from .event import Event, EventStatus, Weekday, format_weekdays, parse_weekdays


@dataclass(frozen=True)
class Count:
    """Terminate after a number of occurrences."""
    occurrences: int


@dataclass(frozen=True)
class EndDate:
    """Terminate after the given date (inclusive)."""
    end_date: date


Termination = Union[Count, EndDate]


def _new_rule_id() -> str:
    return str(uuid.uuid4())


@dataclass(eq=False)
class RecurrenceRule:
    """
    A weekday pattern with a Count or EndDate termination.

    Rules compare and hash by object identity so they can key dictionaries
    of grouped events.
    """
    weekdays: frozenset
    termination: Termination
    id: str = field(default_factory=_new_rule_id)

    def __post_init__(self):
        self.weekdays = parse_weekdays(self.weekdays)
        if isinstance(self.termination, Count):
            if self.termination.occurrences < 0:
                raise InvalidFormatError(
                    f"Occurrence count must not be negative: {self.termination.occurrences}"
                )
        elif not isinstance(self.termination, EndDate):
            raise InvalidFormatError(f"Invalid series termination: {self.termination!r}")

    @classmethod
    def with_count(cls, weekdays, occurrences: int) -> 'RecurrenceRule':
        """Create a count-bound rule. The count must be positive."""
        if not isinstance(occurrences, int) or isinstance(occurrences, bool) or occurrences < 1:
            raise InvalidFormatError(f"Number of occurrences must be a positive integer: {occurrences!r}")
        return cls(weekdays, Count(occurrences))

    @classmethod
    def with_end_date(cls, weekdays, end_date: date) -> 'RecurrenceRule':
        """Create an end-date-bound rule."""
        return cls(weekdays, EndDate(end_date))

    # ==================== Accessors ====================

    @property
    def is_count_bound(self) -> bool:
        return isinstance(self.termination, Count)

    @property
    def occurrences(self) -> Optional[int]:
        """Remaining occurrence count, or None for end-date rules."""
        if isinstance(self.termination, Count):
            return self.termination.occurrences
        return None

    @property
    def end_date(self) -> Optional[date]:
        """Series end date, or None for count-bound rules."""
        if isinstance(self.termination, EndDate):
            return self.termination.end_date
        return None

    def matches(self, day: date) -> bool:
        return Weekday.of(day) in self.weekdays

    # ==================== Operations ====================

    def generate(
        self,
        subject: str,
        start: datetime,
        end_time: time,
        location: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[EventStatus] = None,
    ) -> list[Event]:
        """
        Generate the events of this rule.

        Walks forward one day at a time from start's date and emits an event
        on every day whose weekday is in the pattern, each running from
        start's time of day to end_time.

        Returns:
            Events in increasing date order.
        """
        events = []
        current = start.date()
        start_time = start.time()

        def emit(day: date):
            events.append(Event(
                subject=subject,
                start=datetime.combine(day, start_time),
                end=datetime.combine(day, end_time),
                location=location,
                description=description,
                status=status,
            ))

        if isinstance(self.termination, Count):
            while len(events) < self.termination.occurrences:
                if self.matches(current):
                    emit(current)
                current += timedelta(days=1)
        else:
            while current <= self.termination.end_date:
                if self.matches(current):
                    emit(current)
                current += timedelta(days=1)
        return events

    def decrement(self) -> None:
        """Count one occurrence less. End-date rules are unaffected."""
        if isinstance(self.termination, Count):
            self.termination = Count(max(self.termination.occurrences - 1, 0))

    def clone(self) -> 'RecurrenceRule':
        """Same pattern and termination under a fresh id."""
        return RecurrenceRule(self.weekdays, self.termination)

    def __repr__(self):
        if isinstance(self.termination, Count):
            bound = f"count={self.termination.occurrences}"
        else:
            bound = f"until={self.termination.end_date.isoformat()}"
        return f"RecurrenceRule(id={self.id[:8]}, weekdays={format_weekdays(self.weekdays)}, {bound})"
