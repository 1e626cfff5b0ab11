"""
tzcalendar Backend Module

This module provides the core functionality for multi-calendar scheduling:
- Configuration parsing (config.py)
- Event values, weekday patterns and statuses (event.py)
- Recurrence rules with Count / EndDate termination (recurrence.py)
- Event store with series membership and an interval index (event_store.py)
- Series-aware editing and splitting (series_splitter.py)
- A single calendar in one timezone (event_calendar.py)
- Calendar registry, active-calendar session and copying (calendar_registry.py)
- Text rendering of events (formatting.py)
"""

from .config import Config, CalendarConfig, AllDayConfig
from .errors import (
    CalendarError, AlreadyExistsError, NotFoundError, EventNotFoundError,
    CalendarNotFoundError, UnsupportedOperationError, InvalidFormatError,
    NilActiveError,
)
from .event import Event, EventProperty, EventStatus, CalendarStatus, Weekday
from .recurrence import RecurrenceRule, Count, EndDate
from .event_store import EventStore
from .event_calendar import Calendar
from .calendar_registry import CalendarRegistry, CalendarSession, CalendarProperty
from .formatting import format_event, format_events
from .debug_log import set_debug

__all__ = [
    'Config',
    'CalendarConfig',
    'AllDayConfig',
    # Errors
    'CalendarError',
    'AlreadyExistsError',
    'NotFoundError',
    'EventNotFoundError',
    'CalendarNotFoundError',
    'UnsupportedOperationError',
    'InvalidFormatError',
    'NilActiveError',
    # Model
    'Event',
    'EventProperty',
    'EventStatus',
    'CalendarStatus',
    'Weekday',
    'RecurrenceRule',
    'Count',
    'EndDate',
    'EventStore',
    'Calendar',
    'CalendarRegistry',
    'CalendarSession',
    'CalendarProperty',
    # Output
    'format_event',
    'format_events',
    'set_debug',
]
