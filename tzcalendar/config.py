"""
Configuration parser for tzcalendar.

Reads the TOML configuration (calendars, their timezones, the all-day window
and debug output) into dataclasses.
"""

import tomllib
import os
from pathlib import Path
from dataclasses import dataclass, field
from datetime import time
from typing import Optional

from .debug_log import debug_print, set_debug
from .errors import InvalidFormatError
from .timezone_utils import parse_time, resolve_timezone


DEFAULT_TIMEZONE = "UTC"


def _debug_print(msg: str) -> None:
    debug_print("CONFIG", msg)


@dataclass
class CalendarConfig:
    """Configuration for one calendar."""
    name: str
    timezone: Optional[str] = None  # None: use General.default_timezone


@dataclass
class AllDayConfig:
    """Wall-clock window used for all-day events."""
    start: time = time(8, 0)
    end: time = time(17, 0)


@dataclass
class Config:
    """Main configuration container for tzcalendar."""

    default_timezone: str = DEFAULT_TIMEZONE
    active_calendar: Optional[str] = None
    debug: bool = False
    all_day: AllDayConfig = field(default_factory=AllDayConfig)
    calendars: list[CalendarConfig] = field(default_factory=list)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'tzcalendar' / 'tzcalendar.toml'

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from a TOML file.

        Raises:
            FileNotFoundError: if the file does not exist.
            InvalidFormatError: if the file is not valid TOML or a value is
                malformed (unknown timezone, bad time, wrong type).
        """
        if config_path is None:
            config_path = cls.get_default_config_path()
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise InvalidFormatError(f"Invalid configuration file {config_path}: {e}")

        # Parse General section
        general = data.get('General', {})
        debug = general.get('debug', False)
        if not isinstance(debug, bool):
            raise InvalidFormatError(f"General.debug must be true or false, got {debug!r}")

        default_timezone = general.get('default_timezone', DEFAULT_TIMEZONE)
        resolve_timezone(default_timezone)
        active_calendar = general.get('active_calendar')
        if active_calendar is not None and not isinstance(active_calendar, str):
            raise InvalidFormatError(f"General.active_calendar must be a string, got {active_calendar!r}")

        # Parse AllDay section
        all_day_data = data.get('AllDay', {})
        all_day = AllDayConfig(
            start=parse_time(all_day_data.get('start', AllDayConfig.start)),
            end=parse_time(all_day_data.get('end', AllDayConfig.end)),
        )
        if all_day.end < all_day.start:
            raise InvalidFormatError("AllDay.end must not be before AllDay.start")

        # Parse calendars: [Calendar.Name] sub-tables
        calendars = []
        for name, value in data.get('Calendar', {}).items():
            if not isinstance(value, dict):
                raise InvalidFormatError(f"Calendar.{name} must be a table")
            timezone = value.get('timezone')
            if timezone is not None:
                resolve_timezone(timezone)
            calendars.append(CalendarConfig(name=name, timezone=timezone))

        if active_calendar is not None and active_calendar not in {c.name for c in calendars}:
            raise InvalidFormatError(f"General.active_calendar names an unknown calendar: {active_calendar}")

        # Only switch debug output once the whole file is known to be valid
        set_debug(debug)
        for calendar in calendars:
            _debug_print(f"Found calendar {calendar.name!r} (timezone={calendar.timezone or default_timezone})")
        _debug_print(f"Loaded {len(calendars)} calendars from {config_path}")
        return cls(
            default_timezone=default_timezone,
            active_calendar=active_calendar,
            debug=debug,
            all_day=all_day,
            calendars=calendars,
        )
