"""
Plain-text rendering of events.
"""

from datetime import time
from typing import Iterable

from .event import Event, sort_key


NO_EVENTS_MESSAGE = "No events"


def format_time(value: time) -> str:
    """HH:MM, with seconds appended only when they are not zero."""
    if value.second:
        return value.strftime("%H:%M:%S")
    return value.strftime("%H:%M")


def format_event(event: Event) -> str:
    """
    Render one event as a single line:

        subject Standup starting on 2025-10-07 at 09:00, ending on 2025-10-07 at 09:15 at Room 2
    """
    text = (
        f"subject {event.subject} "
        f"starting on {event.start.date().isoformat()} at {format_time(event.start.time())}, "
        f"ending on {event.end.date().isoformat()} at {format_time(event.end.time())}"
    )
    if event.location:
        text += f" at {event.location}"
    return text


def format_events(events: Iterable[Event], empty_message: str = NO_EVENTS_MESSAGE) -> str:
    """Render events sorted by start, one per line, or empty_message if there are none."""
    ordered = sorted(events, key=sort_key)
    if not ordered:
        return empty_message
    return "\n".join(format_event(event) for event in ordered)
