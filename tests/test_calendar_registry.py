"""Tests for the calendar registry, sessions and cross-calendar copying."""

from __future__ import annotations

import datetime as dt

import pytest

from tzcalendar.calendar_registry import CalendarProperty, CalendarRegistry, CalendarSession
from tzcalendar.config import CalendarConfig, Config
from tzcalendar.errors import (
    AlreadyExistsError,
    CalendarNotFoundError,
    EventNotFoundError,
    InvalidFormatError,
    NilActiveError,
    UnsupportedOperationError,
)
from tzcalendar.recurrence import Count


def _at(day: int, hour: int, minute: int = 0) -> dt.datetime:
    return dt.datetime(2025, 10, day, hour, minute)


@pytest.fixture
def home(registry: CalendarRegistry):
    """Second UTC calendar, for copies without timezone conversion."""
    return registry.add_calendar("Home", "UTC")


class TestCalendarManagement:
    """Tests for adding, renaming and re-zoning calendars."""

    def test_add_and_list_in_order(self, registry: CalendarRegistry) -> None:
        registry.add_calendar("Home", "Europe/Paris")
        assert registry.calendar_names() == ("Work", "Tokyo", "Home")
        assert registry.get_calendar("Home").timezone_name == "Europe/Paris"
        assert registry.get_timezone("Tokyo").zone == "Asia/Tokyo"

    def test_duplicate_name(self, registry: CalendarRegistry) -> None:
        with pytest.raises(AlreadyExistsError):
            registry.add_calendar("Work", "Europe/Paris")

    @pytest.mark.parametrize("name", [["Work"], {"Work": 1}, 42, "  "])
    def test_invalid_name(self, registry: CalendarRegistry, name) -> None:
        with pytest.raises(InvalidFormatError):
            registry.add_calendar(name, "UTC")
        assert registry.calendar_names() == ("Work", "Tokyo")

    @pytest.mark.parametrize("name", [["Tokyo"], {"Tokyo": 1}, None, ""])
    def test_rename_to_invalid_name(self, registry: CalendarRegistry, name) -> None:
        with pytest.raises(InvalidFormatError):
            registry.edit_calendar("Work", "name", name)
        assert registry.calendar_names() == ("Work", "Tokyo")

    def test_unknown_zone(self, registry: CalendarRegistry) -> None:
        with pytest.raises(InvalidFormatError):
            registry.add_calendar("Moon", "Moon/Base")
        assert "Moon" not in registry

    def test_unknown_calendar(self, registry: CalendarRegistry) -> None:
        with pytest.raises(CalendarNotFoundError):
            registry.get_calendar("Nope")
        with pytest.raises(CalendarNotFoundError):
            registry.edit_calendar("Nope", "name", "Other")

    def test_rename_keeps_order_and_active(self, registry: CalendarRegistry, session: CalendarSession) -> None:
        active = session.get_active()
        registry.edit_calendar("Work", CalendarProperty.NAME, "Office")
        assert registry.calendar_names() == ("Office", "Tokyo")
        assert session.get_active() is active
        assert session.active_name == "Office"
        assert registry.get_calendar("Office") is active

    def test_rename_to_taken_name(self, registry: CalendarRegistry) -> None:
        with pytest.raises(AlreadyExistsError):
            registry.edit_calendar("Work", "name", "Tokyo")
        assert registry.calendar_names() == ("Work", "Tokyo")

    def test_timezone_edit_converts_events(self, registry: CalendarRegistry) -> None:
        work = registry.get_calendar("Work")
        work.create_event("Call", _at(7, 9), _at(7, 10))
        registry.edit_calendar("Work", "timezone", "Asia/Tokyo")
        (event,) = work.all_events()
        assert (event.start, event.end) == (_at(7, 18), _at(7, 19))

    def test_timezone_edit_invalid_zone(self, registry: CalendarRegistry) -> None:
        with pytest.raises(InvalidFormatError):
            registry.edit_calendar("Work", "timezone", "Nowhere/City")

    def test_unknown_property(self, registry: CalendarRegistry) -> None:
        with pytest.raises(InvalidFormatError):
            registry.edit_calendar("Work", "color", "red")

    def test_from_config(self) -> None:
        config = Config(
            default_timezone="Europe/Paris",
            calendars=[CalendarConfig("Work"), CalendarConfig("Travel", "Asia/Tokyo")],
        )
        registry = CalendarRegistry.from_config(config)
        assert registry.calendar_names() == ("Work", "Travel")
        assert registry.get_calendar("Work").timezone_name == "Europe/Paris"
        assert registry.get_calendar("Travel").timezone_name == "Asia/Tokyo"


class TestSession:
    """Tests for the active-calendar session."""

    def test_no_active_calendar(self, registry: CalendarRegistry) -> None:
        session = CalendarSession(registry)
        assert not session.has_active
        assert session.active_name is None
        with pytest.raises(NilActiveError):
            session.get_active()

    def test_activate_unknown(self, registry: CalendarRegistry) -> None:
        with pytest.raises(CalendarNotFoundError):
            CalendarSession(registry).activate("Nope")

    def test_sessions_are_independent(self, registry: CalendarRegistry, session: CalendarSession) -> None:
        other = CalendarSession(registry)
        other.activate("Tokyo")
        assert session.active_name == "Work"
        assert other.active_name == "Tokyo"

    def test_from_config_activates(self) -> None:
        config = Config(calendars=[CalendarConfig("Work"), CalendarConfig("Home")], active_calendar="Home")
        session = CalendarSession.from_config(config)
        assert session.active_name == "Home"


class TestCopyPreconditions:
    """Shared checks of all copy operations."""

    def test_copy_without_active_calendar(self, registry: CalendarRegistry) -> None:
        session = CalendarSession(registry)
        with pytest.raises(NilActiveError):
            session.copy_single_event("Call", _at(7, 9), "Tokyo", _at(8, 9))
        with pytest.raises(NilActiveError):
            session.copy_events_on_date("2025-10-07", "Tokyo", "2025-10-08")
        with pytest.raises(NilActiveError):
            session.copy_events_between("2025-10-07", "2025-10-08", "Tokyo", "2025-10-09")

    def test_copy_to_active_calendar(self, session: CalendarSession) -> None:
        session.get_active().create_event("Call", _at(7, 9), _at(7, 10))
        with pytest.raises(UnsupportedOperationError):
            session.copy_single_event("Call", _at(7, 9), "Work", _at(8, 9))

    def test_copy_to_unknown_calendar(self, session: CalendarSession) -> None:
        session.get_active().create_event("Call", _at(7, 9), _at(7, 10))
        with pytest.raises(CalendarNotFoundError):
            session.copy_events_on_date(dt.date(2025, 10, 7), "Nope", dt.date(2025, 10, 8))


class TestCopySingleEvent:
    """Tests for copying one event."""

    def test_copy_keeps_duration_and_details(self, registry: CalendarRegistry, session: CalendarSession) -> None:
        session.get_active().create_event("Call", _at(7, 9), _at(7, 10, 30), location="Zoom")
        (copy,) = session.copy_single_event("Call", "2025-10-07T09:00", "Tokyo", "2025-10-20T14:00")
        assert (copy.start, copy.end) == (_at(20, 14), _at(20, 15, 30))
        assert copy.location == "Zoom"
        assert registry.get_calendar("Tokyo").all_events() == (copy,)

    def test_series_member_copied_as_standalone(self, registry: CalendarRegistry, session: CalendarSession) -> None:
        session.get_active().create_series_with_count("PDP", _at(7, 13, 35), _at(7, 15, 15), "TF", 4)
        (copy,) = session.copy_single_event("PDP", _at(10, 13, 35), "Tokyo", _at(21, 9))
        assert not registry.get_calendar("Tokyo").is_in_series(copy)

    def test_no_match(self, session: CalendarSession) -> None:
        with pytest.raises(EventNotFoundError):
            session.copy_single_event("Call", _at(7, 9), "Tokyo", _at(8, 9))

    def test_collision_in_target(self, registry: CalendarRegistry, session: CalendarSession) -> None:
        session.get_active().create_event("Call", _at(7, 9), _at(7, 10))
        registry.get_calendar("Tokyo").create_event("Call", _at(8, 9), _at(8, 10))
        with pytest.raises(AlreadyExistsError):
            session.copy_single_event("Call", _at(7, 9), "Tokyo", _at(8, 9))


class TestCopyEventsOnDate:
    """Tests for copying one day of events."""

    def test_single_and_multi_day_events(self, registry: CalendarRegistry, session: CalendarSession, home) -> None:
        work = session.get_active()
        trip = work.create_event("Trip", _at(6, 20), _at(8, 6))
        work.create_event("Lunch", _at(7, 12), _at(7, 13))
        work.create_event("Dinner", _at(8, 19), _at(8, 20))
        copies = session.copy_events_on_date("2025-10-07", "Home", "2025-10-20")
        assert [(c.subject, c.start, c.end) for c in copies] == [
            ("Trip", _at(19, 20), _at(21, 6)),
            ("Lunch", _at(20, 12), _at(20, 13)),
        ]
        assert not any(home.is_in_series(c) for c in copies)
        assert trip in work.all_events()

    def test_timezone_then_day_shift(self, registry: CalendarRegistry, session: CalendarSession) -> None:
        work = session.get_active()
        work.create_event("Trip", _at(6, 20), _at(8, 6))
        work.create_event("Lunch", _at(7, 12), _at(7, 13))
        session.copy_events_on_date(dt.date(2025, 10, 7), "Tokyo", dt.date(2025, 10, 20))
        tokyo = registry.get_calendar("Tokyo").all_events()
        assert [(e.subject, e.start, e.end) for e in tokyo] == [
            ("Trip", _at(20, 5), _at(21, 15)),
            ("Lunch", _at(20, 21), _at(20, 22)),
        ]

    def test_series_day_slice_is_standalone(self, session: CalendarSession, home) -> None:
        session.get_active().create_series_with_count("PDP", _at(7, 13, 35), _at(7, 15, 15), "TF", 4)
        (copy,) = session.copy_events_on_date("2025-10-10", "Home", "2025-10-11")
        assert copy.start == _at(11, 13, 35)
        assert not home.is_in_series(copy)

    def test_empty_date(self, session: CalendarSession) -> None:
        with pytest.raises(EventNotFoundError):
            session.copy_events_on_date("2025-10-07", "Tokyo", "2025-10-08")


class TestCopyEventsBetween:
    """Tests for copying an interval, re-anchoring series."""

    def test_series_laid_out_on_pattern(self, session: CalendarSession, home) -> None:
        work = session.get_active()
        work.create_series_with_count("PDP", _at(7, 13, 35), _at(7, 15, 15), "TF", 4)
        lunch = work.create_event("Lunch", _at(8, 12), _at(8, 13))
        copies = session.copy_events_between("2025-10-07", "2025-10-10", "Home", "2025-10-20")

        # 10-20 is a Monday: members land on the next Tuesday and Friday
        assert [(c.subject, c.start) for c in copies] == [
            ("Lunch", _at(21, 12)),
            ("PDP", _at(21, 13, 35)),
            ("PDP", _at(24, 13, 35)),
        ]
        series = [c for c in copies if c.subject == "PDP"]
        assert all(c.end.time() == dt.time(15, 15) for c in series)
        assert home.store.rule_of(series[0]) is home.store.rule_of(series[1])
        assert home.store.rule_of(series[0]).termination == Count(2)
        assert not home.is_in_series(lunch.shifted(dt.timedelta(days=13)))

    def test_end_date_rule_shifted(self, session: CalendarSession, home) -> None:
        session.get_active().create_series_until("Yoga", _at(6, 7), _at(6, 8), "MW", "2025-10-22")
        copies = session.copy_events_between("2025-10-06", "2025-10-12", "Home", "2025-10-27")
        assert [c.start for c in copies] == [_at(27, 7), _at(29, 7)]
        assert home.series_end_date(copies[0]) == dt.date(2025, 11, 12)

    def test_series_crossing_midnight_after_conversion(self, registry: CalendarRegistry,
                                                        session: CalendarSession) -> None:
        session.get_active().create_series_with_count("PDP", _at(7, 13, 35), _at(7, 15, 15), "TF", 4)
        with pytest.raises(UnsupportedOperationError):
            session.copy_events_between("2025-10-07", "2025-10-10", "Tokyo", "2025-10-20")
        assert registry.get_calendar("Tokyo").all_events() == ()

    def test_series_converted_within_day(self, registry: CalendarRegistry, session: CalendarSession) -> None:
        session.get_active().create_series_with_count("Sync", _at(7, 1), _at(7, 2), "TF", 4)
        copies = session.copy_events_between("2025-10-07", "2025-10-07", "Tokyo", "2025-10-07")
        assert [(c.start, c.end) for c in copies] == [(_at(7, 10), _at(7, 11))]
        tokyo = registry.get_calendar("Tokyo")
        assert tokyo.series_occurrences(copies[0]) == 1

    def test_collision_inserts_nothing(self, session: CalendarSession, home) -> None:
        work = session.get_active()
        work.create_series_with_count("PDP", _at(7, 13, 35), _at(7, 15, 15), "TF", 4)
        work.create_event("Lunch", _at(8, 12), _at(8, 13))
        home.create_event("PDP", _at(24, 13, 35), _at(24, 15, 15))
        with pytest.raises(AlreadyExistsError):
            session.copy_events_between("2025-10-07", "2025-10-10", "Home", "2025-10-20")
        assert len(home.all_events()) == 1

    def test_empty_interval(self, session: CalendarSession, home) -> None:
        with pytest.raises(EventNotFoundError):
            session.copy_events_between("2025-10-07", "2025-10-10", "Home", "2025-10-20")

    def test_registry_copy_with_explicit_source(self, registry: CalendarRegistry, home) -> None:
        work = registry.get_calendar("Work")
        work.create_event("Call", _at(7, 9), _at(7, 10))
        copies = registry.copy_events_between(work, "2025-10-07", "2025-10-07", "Home", "2025-10-08")
        assert [(c.start, c.end) for c in copies] == [(_at(8, 9), _at(8, 10))]
