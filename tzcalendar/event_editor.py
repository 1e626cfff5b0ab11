"""
Property editing for events.

EventEditor maps (event, property, new value) to a new event snapshot. It
only checks that the value is valid for the property; rules that involve
the rest of the calendar (identity collisions, series structure) are left
to the store and the series splitter.
"""

from datetime import datetime
from typing import Any, Callable

from .errors import InvalidFormatError
from .event import Event, EventProperty, EventStatus
from .timezone_utils import parse_datetime, parse_time


def _optional_text(value: Any, what: str):
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidFormatError(f"Invalid {what}: {value!r}")
    return value


def validate_subject(value: Any) -> str:
    """A subject must be a non-blank string."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidFormatError(f"Invalid subject: {value!r}")
    return value


def _edit_subject(event: Event, value: Any) -> Event:
    return event.with_changes(subject=validate_subject(value))


def _edit_start(event: Event, value: Any) -> Event:
    return event.with_changes(start=parse_datetime(value))


def _edit_end(event: Event, value: Any) -> Event:
    return event.with_changes(end=parse_datetime(value))


def _edit_end_time(event: Event, value: Any) -> Event:
    # A full datetime only contributes its time of day
    if isinstance(value, datetime):
        new_time = value.time()
    else:
        new_time = parse_time(value)
    return event.with_changes(end=datetime.combine(event.end.date(), new_time))


def _edit_description(event: Event, value: Any) -> Event:
    return event.with_changes(description=_optional_text(value, "description"))


def _edit_location(event: Event, value: Any) -> Event:
    return event.with_changes(location=_optional_text(value, "location"))


def _edit_status(event: Event, value: Any) -> Event:
    status = None if value is None else EventStatus.parse(value)
    return event.with_changes(status=status)


class EventEditor:
    """Produces edited copies of events, one handler per property."""

    def __init__(self):
        self._handlers: dict[EventProperty, Callable[[Event, Any], Event]] = {
            EventProperty.SUBJECT: _edit_subject,
            EventProperty.START: _edit_start,
            EventProperty.END: _edit_end,
            EventProperty.END_TIME: _edit_end_time,
            EventProperty.DESCRIPTION: _edit_description,
            EventProperty.LOCATION: _edit_location,
            EventProperty.STATUS: _edit_status,
        }

    def edit(self, event: Event, prop, new_value: Any) -> Event:
        """
        Return a copy of event with one property changed.

        Args:
            event: the event to edit (left untouched).
            prop: EventProperty or its name ("start", "location", ...).
            new_value: the new value, either typed or as a string.

        Returns:
            The edited event.

        Raises:
            InvalidFormatError: if the property or the value is invalid.
        """
        prop = EventProperty.parse(prop)
        return self._handlers[prop](event, new_value)

    def copy_details(self, event: Event, template: Event) -> Event:
        """Copy description, location and status of template onto event."""
        return event.with_changes(
            description=template.description,
            location=template.location,
            status=template.status,
        )
