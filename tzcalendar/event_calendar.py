"""
A single calendar: one event store in one timezone.

Calendar is the entry point for creating, editing and querying events. It
parses and validates caller input, then delegates bookkeeping to the
EventStore, scoped series edits to the SeriesSplitter and value changes to
the EventEditor.
"""

from datetime import date, datetime, time
from typing import Any, Optional

from .debug_log import debug_print
from .errors import EventNotFoundError, UnsupportedOperationError
from .event import CalendarStatus, Event, EventProperty, EventStatus, parse_weekdays
from .event_editor import EventEditor, validate_subject
from .event_store import EventStore, SERIES_SPAN_MESSAGE
from .recurrence import RecurrenceRule
from .series_splitter import SeriesSplitter
from .timezone_utils import (
    convert_wall_clock, parse_date, parse_datetime,
    resolve_timezone, zone_name,
)


def _debug_print(msg: str) -> None:
    debug_print("CALENDAR", msg)


# Default window used for all-day events
ALL_DAY_START = time(8, 0)
ALL_DAY_END = time(17, 0)


def _optional_status(status) -> Optional[EventStatus]:
    return None if status is None else EventStatus.parse(status)


class Calendar:
    """
    One named calendar with its own timezone and event store.
    """

    def __init__(
        self,
        name: str,
        timezone="UTC",
        all_day_start: time = ALL_DAY_START,
        all_day_end: time = ALL_DAY_END,
    ):
        self.name = name
        self._timezone = resolve_timezone(timezone)
        self.all_day_start = all_day_start
        self.all_day_end = all_day_end

        self._store = EventStore()
        self._editor = EventEditor()
        self._splitter = SeriesSplitter(self._store, self._editor)

    def __repr__(self):
        return f"Calendar(name={self.name!r}, timezone={self.timezone_name!r}, events={len(self._store)})"

    @property
    def timezone(self):
        """pytz timezone the stored wall-clock times belong to."""
        return self._timezone

    @property
    def timezone_name(self) -> str:
        return zone_name(self._timezone)

    @property
    def store(self) -> EventStore:
        return self._store

    # ==================== Creation ====================

    def create_event(
        self,
        subject: str,
        start,
        end,
        location: Optional[str] = None,
        description: Optional[str] = None,
        status=None,
    ) -> Event:
        """
        Create a standalone timed event.

        Raises:
            InvalidFormatError: if start or end cannot be parsed.
            UnsupportedOperationError: if the event ends before it starts.
            AlreadyExistsError: if the same event already exists.
        """
        validate_subject(subject)
        start = parse_datetime(start)
        end = parse_datetime(end)
        if end < start:
            raise UnsupportedOperationError("Event ends before starting")
        event = Event(subject, start, end, location=location, description=description,
                      status=_optional_status(status))
        return self._store.add_single(event)

    def create_all_day_event(self, subject: str, on_date, **details) -> Event:
        """Create a standalone event covering the all-day window of on_date."""
        day = parse_date(on_date)
        return self.create_event(
            subject,
            datetime.combine(day, self.all_day_start),
            datetime.combine(day, self.all_day_end),
            **details,
        )

    def create_series_with_count(
        self,
        subject: str,
        start,
        end,
        weekdays,
        occurrences: int,
        location: Optional[str] = None,
        description: Optional[str] = None,
        status=None,
    ) -> tuple:
        """
        Create a series repeating on weekdays for a number of occurrences.

        Args:
            start, end: the first occurrence's start and end; they must be
                on the same date.
            weekdays: pattern as one-letter codes ("TF") or Weekday members.
            occurrences: number of events to create.

        Returns:
            The created events in date order.
        """
        start, end = self._series_span(start, end)
        rule = RecurrenceRule.with_count(parse_weekdays(weekdays), occurrences)
        return self._add_series(rule, subject, start, end, location, description, status)

    def create_series_until(
        self,
        subject: str,
        start,
        end,
        weekdays,
        until,
        location: Optional[str] = None,
        description: Optional[str] = None,
        status=None,
    ) -> tuple:
        """Create a series repeating on weekdays up to and including date until."""
        start, end = self._series_span(start, end)
        rule = RecurrenceRule.with_end_date(parse_weekdays(weekdays), parse_date(until))
        return self._add_series(rule, subject, start, end, location, description, status)

    def create_all_day_series_with_count(self, subject: str, start_date, weekdays,
                                         occurrences: int, **details) -> tuple:
        day = parse_date(start_date)
        return self.create_series_with_count(
            subject,
            datetime.combine(day, self.all_day_start),
            datetime.combine(day, self.all_day_end),
            weekdays, occurrences, **details,
        )

    def create_all_day_series_until(self, subject: str, start_date, weekdays,
                                    until, **details) -> tuple:
        day = parse_date(start_date)
        return self.create_series_until(
            subject,
            datetime.combine(day, self.all_day_start),
            datetime.combine(day, self.all_day_end),
            weekdays, until, **details,
        )

    def _series_span(self, start, end) -> tuple:
        start = parse_datetime(start)
        end = parse_datetime(end)
        if start.date() != end.date():
            raise UnsupportedOperationError(SERIES_SPAN_MESSAGE)
        if end < start:
            raise UnsupportedOperationError("Event ends before starting")
        return start, end

    def _add_series(self, rule, subject, start, end, location, description, status) -> tuple:
        validate_subject(subject)
        events = self._store.add_series(
            rule, subject, start, end.time(),
            location=location, description=description, status=_optional_status(status),
        )
        if not events:
            self._store.remove_rule(rule)
            raise UnsupportedOperationError("Series does not produce any events")
        _debug_print(f"{self.name}: created {rule!r} for {subject!r}")
        return events

    # ==================== Editing ====================

    def edit_event(self, subject: str, start, end, prop, new_value: Any) -> Event:
        """
        Edit one event, identified by subject, start and end.

        Returns:
            The edited event.

        Raises:
            EventNotFoundError: if no such event exists.
        """
        prop = EventProperty.parse(prop)
        event = self._store.find(subject, parse_datetime(start), parse_datetime(end))
        return self._splitter.edit_single(event, prop, new_value)

    def edit_events_from(self, subject: str, start, prop, new_value: Any) -> None:
        """
        Edit the events with this subject and start, and for series events
        also every later event of the series.
        """
        self._edit_scoped(subject, start, prop, new_value, self._splitter.plan_following)

    def edit_series(self, subject: str, start, prop, new_value: Any) -> None:
        """
        Edit the events with this subject and start, and for series events
        every event of the series.
        """
        self._edit_scoped(subject, start, prop, new_value, self._splitter.plan_all)

    def _edit_scoped(self, subject, start, prop, new_value, plan_series_edit) -> None:
        # All matches are planned and checked together before any is applied
        prop = EventProperty.parse(prop)
        start = parse_datetime(start)
        matches = self._store.find_starting_at(subject, start)
        if not matches:
            raise EventNotFoundError(f"No event {subject!r} starts at {start.isoformat()}")

        standalone = [event for event in matches if not self._store.is_in_series(event)]
        rules = self._store.rules_of(matches)
        plans = [self._splitter.plan_single(event, prop, new_value) for event in standalone]
        plans.extend(plan_series_edit(rule, prop, start, new_value) for rule in rules)
        self._store.ensure_absent(
            [event for plan in plans for event in plan.added],
            replacing=[event for plan in plans for event in plan.removed],
        )
        for plan in plans:
            plan.apply()

    # ==================== Queries ====================

    def all_events(self) -> tuple:
        return self._store.all_events()

    def events_on_date(self, day) -> tuple:
        """Events touching the given date, sorted by start."""
        return self._store.events_on_date(parse_date(day))

    def events_in_range(self, start, end) -> tuple:
        """Events overlapping [start, end], sorted by start."""
        return self._store.events_in_range(parse_datetime(start), parse_datetime(end))

    def status_at(self, instant) -> CalendarStatus:
        """BUSY if any event is in progress at instant, else AVAILABLE."""
        if self._store.events_at(parse_datetime(instant)):
            return CalendarStatus.BUSY
        return CalendarStatus.AVAILABLE

    def is_in_series(self, event: Event) -> bool:
        return self._store.is_in_series(event)

    def series_weekdays(self, event: Event) -> frozenset:
        return self._store.require_rule(event).weekdays

    def series_end_date(self, event: Event) -> Optional[date]:
        """End date of event's series, or None for count-bound series."""
        return self._store.require_rule(event).end_date

    def series_occurrences(self, event: Event) -> Optional[int]:
        """Occurrence count of event's series, or None for end-date series."""
        return self._store.require_rule(event).occurrences

    # ==================== Timezone ====================

    def convert_timezone(self, new_timezone) -> None:
        """
        Move the calendar to another timezone, re-expressing every event's
        wall-clock start and end so each keeps its absolute instant.
        """
        new_tz = resolve_timezone(new_timezone)
        old_tz = self._timezone

        def convert(event: Event) -> Event:
            return event.with_changes(
                start=convert_wall_clock(event.start, old_tz, new_tz),
                end=convert_wall_clock(event.end, old_tz, new_tz),
            )

        count = self._store.rewrite_all(convert)
        self._timezone = new_tz
        _debug_print(f"{self.name}: moved {count} events from {zone_name(old_tz)} to {zone_name(new_tz)}")
