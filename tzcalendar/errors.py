"""
Error types raised by the calendar backend.

Every failure is raised synchronously to the caller. The classes map onto
the five kinds of failure the backend can report:

- AlreadyExistsError: identity collision on insert or rename
- NotFoundError: unknown calendar, event or series
- UnsupportedOperationError: structural violation (end before start,
  series event spanning two days, copy to the same calendar, ...)
- InvalidFormatError: unparsable date, time, timezone or property value
- NilActiveError: operation needs an active calendar
"""


class CalendarError(Exception):
    """Base class for all calendar backend errors."""


class AlreadyExistsError(CalendarError):
    """An event or calendar with the same identity already exists."""


class NotFoundError(CalendarError):
    """A lookup did not match anything."""


class EventNotFoundError(NotFoundError):
    """No event (or series) matched the lookup."""


class CalendarNotFoundError(NotFoundError):
    """No calendar is registered under the given name."""


class UnsupportedOperationError(CalendarError):
    """The requested change would break a structural rule."""


class InvalidFormatError(CalendarError, ValueError):
    """A value could not be parsed or resolved."""


class NilActiveError(CalendarError):
    """The operation requires an active calendar but none was activated."""
