"""Shared test fixtures and configuration."""

from __future__ import annotations

import datetime as dt

import pytest

from tzcalendar.calendar_registry import CalendarRegistry, CalendarSession
from tzcalendar.debug_log import set_debug
from tzcalendar.event_calendar import Calendar


@pytest.fixture(autouse=True)
def quiet_debug():
    """Keep debug output off between tests (config loading may enable it)."""
    set_debug(False)
    yield
    set_debug(False)


@pytest.fixture
def calendar() -> Calendar:
    """An empty calendar in UTC."""
    return Calendar("Work", "UTC")


@pytest.fixture
def pdp_series(calendar: Calendar) -> tuple:
    """Count-bound Tuesday/Friday series starting Tuesday 2025-10-07, four occurrences."""
    return calendar.create_series_with_count(
        "PDP",
        dt.datetime(2025, 10, 7, 13, 35),
        dt.datetime(2025, 10, 7, 15, 15),
        "TF",
        4,
        location="Room 4",
    )


@pytest.fixture
def registry() -> CalendarRegistry:
    """Registry with a UTC calendar and a Tokyo (UTC+9, no DST) calendar."""
    registry = CalendarRegistry()
    registry.add_calendar("Work", "UTC")
    registry.add_calendar("Tokyo", "Asia/Tokyo")
    return registry


@pytest.fixture
def session(registry: CalendarRegistry) -> CalendarSession:
    """Session on the registry with the UTC calendar active."""
    session = CalendarSession(registry)
    session.activate("Work")
    return session
