"""
Registry of named, independently time-zoned calendars.

CalendarRegistry owns the calendars (in creation order) and implements the
cross-calendar copy operations. Copies translate wall-clock times from the
source calendar's timezone to the target's and shift them by the requested
number of days.

The active calendar is not registry state: a CalendarSession, created and
owned by the caller, holds it and passes it to the registry as the copy
source.
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional

from .debug_log import debug_print
from .errors import (
    AlreadyExistsError, CalendarNotFoundError, EventNotFoundError,
    InvalidFormatError, NilActiveError, UnsupportedOperationError,
)
from .event import Event, Weekday, sort_key
from .event_calendar import ALL_DAY_END, ALL_DAY_START, Calendar
from .event_store import SERIES_SPAN_MESSAGE
from .recurrence import Count, EndDate, RecurrenceRule
from .timezone_utils import (
    convert_wall_clock, days_between, parse_date, parse_datetime, resolve_timezone,
)


def _debug_print(msg: str) -> None:
    debug_print("REGISTRY", msg)


class CalendarProperty(Enum):
    """Editable properties of a calendar."""
    NAME = "name"
    TIMEZONE = "timezone"

    @classmethod
    def parse(cls, value) -> 'CalendarProperty':
        if isinstance(value, CalendarProperty):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise InvalidFormatError(f"Invalid calendar property: {value!r}")


class CalendarRegistry:
    """
    Named calendars with their timezones, plus the copy engine.
    """

    def __init__(self, all_day_start=ALL_DAY_START, all_day_end=ALL_DAY_END):
        self._calendars: dict[str, Calendar] = {}
        self._all_day_start = all_day_start
        self._all_day_end = all_day_end

    @classmethod
    def from_config(cls, config) -> 'CalendarRegistry':
        """Build a registry with the calendars listed in a Config."""
        registry = cls(all_day_start=config.all_day.start, all_day_end=config.all_day.end)
        for calendar_config in config.calendars:
            registry.add_calendar(calendar_config.name,
                                  calendar_config.timezone or config.default_timezone)
        return registry

    def __len__(self) -> int:
        return len(self._calendars)

    def __contains__(self, name: str) -> bool:
        return name in self._calendars

    # ==================== Calendar Management ====================

    def add_calendar(self, name: str, zone_id) -> Calendar:
        """
        Create an empty calendar.

        Raises:
            AlreadyExistsError: if the name is taken.
            InvalidFormatError: if zone_id is not a known timezone.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidFormatError(f"Invalid calendar name: {name!r}")
        if name in self._calendars:
            raise AlreadyExistsError(f"Calendar already exists: {name}")
        calendar = Calendar(name, resolve_timezone(zone_id),
                            all_day_start=self._all_day_start, all_day_end=self._all_day_end)
        self._calendars[name] = calendar
        _debug_print(f"Added calendar {name!r} ({calendar.timezone_name})")
        return calendar

    def get_calendar(self, name: str) -> Calendar:
        """
        Raises:
            CalendarNotFoundError: if no calendar has this name.
        """
        calendar = self._calendars.get(name)
        if calendar is None:
            raise CalendarNotFoundError(f"Calendar not found: {name}")
        return calendar

    def calendar_names(self) -> tuple:
        """Calendar names in creation order."""
        return tuple(self._calendars)

    def calendars(self) -> tuple:
        return tuple(self._calendars.values())

    def get_timezone(self, name: str):
        return self.get_calendar(name).timezone

    def edit_calendar(self, name: str, prop, new_value: Any) -> None:
        """
        Rename a calendar or move it to another timezone.

        Renaming keeps the calendar's position and identity, so sessions
        that have it active keep it active. Changing the timezone re-expresses
        every event in the new zone.

        Raises:
            CalendarNotFoundError: if the calendar does not exist.
            AlreadyExistsError: if the new name is taken.
            InvalidFormatError: for an unknown property or timezone.
        """
        calendar = self.get_calendar(name)
        prop = CalendarProperty.parse(prop)
        if prop == CalendarProperty.NAME:
            self._rename(name, new_value)
        else:
            calendar.convert_timezone(resolve_timezone(new_value))

    def _rename(self, old_name: str, new_name: str) -> None:
        if not isinstance(new_name, str) or not new_name.strip():
            raise InvalidFormatError(f"Invalid calendar name: {new_name!r}")
        if new_name in self._calendars:
            raise AlreadyExistsError(f"Calendar already exists: {new_name}")
        self._calendars = {
            (new_name if key == old_name else key): calendar
            for key, calendar in self._calendars.items()
        }
        self._calendars[new_name].name = new_name
        _debug_print(f"Renamed calendar {old_name!r} to {new_name!r}")

    # ==================== Copying ====================

    def _copy_target(self, source: Optional[Calendar], target_name: str) -> Calendar:
        """Check the shared copy preconditions and return the target calendar."""
        if source is None:
            raise NilActiveError("Must activate a calendar first")
        target = self.get_calendar(target_name)
        if target is source:
            raise UnsupportedOperationError("Cannot copy events to the same calendar")
        return target

    def copy_single_event(
        self,
        source: Optional[Calendar],
        subject: str,
        source_start,
        target_name: str,
        target_start,
    ) -> tuple:
        """
        Copy the events with subject starting at source_start into the target
        calendar, starting at target_start (target wall clock) with their
        original duration. Copies are standalone events.

        Returns:
            The inserted copies.

        Raises:
            EventNotFoundError: if nothing matches.
            AlreadyExistsError: if a copy collides with a target event.
        """
        target = self._copy_target(source, target_name)
        source_start = parse_datetime(source_start)
        target_start = parse_datetime(target_start)

        matches = source.store.find_starting_at(subject, source_start)
        if not matches:
            raise EventNotFoundError(f"Event not found: {subject!r} at {source_start.isoformat()}")
        copies = [
            event.with_changes(start=target_start, end=target_start + event.duration)
            for event in matches
        ]
        target.store.add_events(copies)
        _debug_print(f"Copied {len(copies)} event(s) {subject!r} from {source.name!r} to {target.name!r}")
        return tuple(copies)

    def copy_events_on_date(
        self,
        source: Optional[Calendar],
        source_date,
        target_name: str,
        target_date,
    ) -> tuple:
        """
        Copy every event touching source_date into the target calendar,
        moved to target_date. Copies are standalone events.

        Raises:
            EventNotFoundError: if no event touches source_date.
            AlreadyExistsError: if a copy collides with a target event.
        """
        target = self._copy_target(source, target_name)
        source_date = parse_date(source_date)
        target_date = parse_date(target_date)

        selected = source.store.events_on_date(source_date)
        if not selected:
            raise EventNotFoundError(f"No events on {source_date.isoformat()}")
        shift = days_between(source_date, target_date)
        copies = [self._translate(event, source, target, shift) for event in selected]
        target.store.add_events(copies)
        _debug_print(f"Copied {len(copies)} event(s) on {source_date} from {source.name!r} to {target.name!r}")
        return tuple(copies)

    def copy_events_between(
        self,
        source: Optional[Calendar],
        start_date,
        end_date,
        target_name: str,
        target_start,
    ) -> tuple:
        """
        Copy every event touching [start_date, end_date] into the target
        calendar so the interval starts at target_start.

        Standalone events are translated individually. Series events are
        translated per series, then laid out again on the series' weekdays
        from target_start onwards (in original order, one matching day per
        event) and attached to a fresh rule in the target.

        Returns:
            All inserted copies, sorted by start.

        Raises:
            EventNotFoundError: if nothing touches the interval.
            UnsupportedOperationError: if a translated series event would
                span two dates.
            AlreadyExistsError: if a copy collides with a target event.
        """
        target = self._copy_target(source, target_name)
        start_date = parse_date(start_date)
        end_date = parse_date(end_date)
        target_start = parse_date(target_start)

        shift = days_between(start_date, target_start)
        standalone = [
            self._translate(event, source, target, shift)
            for event in source.store.standalone_between(start_date, end_date)
        ]
        series_groups = []
        for rule, members in source.store.series_between(start_date, end_date).items():
            translated = []
            for event in members:
                moved = self._translate(event, source, target, shift)
                if not moved.is_single_day:
                    raise UnsupportedOperationError(SERIES_SPAN_MESSAGE)
                translated.append(moved)
            placed = self._place_on_weekdays(rule, translated, target_start)
            series_groups.append((self._copied_rule(rule, placed, shift), placed))

        if not standalone and not series_groups:
            raise EventNotFoundError(
                f"No events between {start_date.isoformat()} and {end_date.isoformat()}"
            )
        every_copy = standalone + [event for _, placed in series_groups for event in placed]
        target.store.ensure_absent(every_copy)

        target.store.add_events(standalone)
        for new_rule, placed in series_groups:
            target.store.attach_to_rule(new_rule, placed)
        _debug_print(
            f"Copied {len(standalone)} standalone event(s) and {len(series_groups)} series "
            f"from {source.name!r} to {target.name!r}"
        )
        return tuple(sorted(every_copy, key=sort_key))

    # ==================== Copy Helpers ====================

    @staticmethod
    def _translate(event: Event, source: Calendar, target: Calendar, shift: timedelta) -> Event:
        """Express event in target's timezone, then move it by shift."""
        return event.with_changes(
            start=convert_wall_clock(event.start, source.timezone, target.timezone) + shift,
            end=convert_wall_clock(event.end, source.timezone, target.timezone) + shift,
        )

    @staticmethod
    def _place_on_weekdays(rule: RecurrenceRule, events: list[Event], first_day: date) -> list[Event]:
        """
        Lay events out on rule's weekdays starting at first_day.

        Events are taken in original start order; each lands on the next
        matching weekday on or after the cursor, keeping its time of day.
        """
        placed = []
        cursor = first_day
        for event in sorted(events, key=sort_key):
            while Weekday.of(cursor) not in rule.weekdays:
                cursor += timedelta(days=1)
            placed.append(event.with_changes(
                start=datetime.combine(cursor, event.start.time()),
                end=datetime.combine(cursor, event.end.time()),
            ))
            cursor += timedelta(days=1)
        return placed

    @staticmethod
    def _copied_rule(rule: RecurrenceRule, placed: list[Event], shift: timedelta) -> RecurrenceRule:
        """
        Rule for a copied series: Count sized to the copied events, or the
        original end date moved by the copy shift (never before the last
        copied event).
        """
        if isinstance(rule.termination, Count):
            return RecurrenceRule(rule.weekdays, Count(len(placed)))
        end_date = rule.termination.end_date + timedelta(days=shift.days)
        last_day = max(event.start.date() for event in placed)
        return RecurrenceRule(rule.weekdays, EndDate(max(end_date, last_day)))


class CalendarSession:
    """
    Caller-owned view of a registry with one active calendar.

    The active calendar is held by reference, so renaming it in the registry
    does not deactivate it.
    """

    def __init__(self, registry: CalendarRegistry):
        self.registry = registry
        self._active: Optional[Calendar] = None

    @classmethod
    def from_config(cls, config) -> 'CalendarSession':
        """Registry built from config, with its active_calendar activated if set."""
        session = cls(CalendarRegistry.from_config(config))
        if config.active_calendar:
            session.activate(config.active_calendar)
        return session

    def activate(self, name: str) -> Calendar:
        """
        Raises:
            CalendarNotFoundError: if no calendar has this name.
        """
        self._active = self.registry.get_calendar(name)
        return self._active

    def get_active(self) -> Calendar:
        """
        Raises:
            NilActiveError: if no calendar has been activated.
        """
        if self._active is None:
            raise NilActiveError("Must activate a calendar first")
        return self._active

    @property
    def has_active(self) -> bool:
        return self._active is not None

    @property
    def active_name(self) -> Optional[str]:
        return self._active.name if self._active else None

    def copy_single_event(self, subject: str, source_start, target_name: str, target_start) -> tuple:
        return self.registry.copy_single_event(self._active, subject, source_start, target_name, target_start)

    def copy_events_on_date(self, source_date, target_name: str, target_date) -> tuple:
        return self.registry.copy_events_on_date(self._active, source_date, target_name, target_date)

    def copy_events_between(self, start_date, end_date, target_name: str, target_start) -> tuple:
        return self.registry.copy_events_between(self._active, start_date, end_date, target_name, target_start)
