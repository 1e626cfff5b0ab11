"""Tests for recurrence rules."""

from __future__ import annotations

import datetime as dt

import pytest

from tzcalendar.errors import InvalidFormatError
from tzcalendar.event import EventStatus, Weekday
from tzcalendar.recurrence import Count, EndDate, RecurrenceRule

START = dt.datetime(2025, 10, 7, 13, 35)  # a Tuesday
END_TIME = dt.time(15, 15)


class TestCountRule:
    """Tests for count-bound generation."""

    def test_tuesday_friday_four_occurrences(self) -> None:
        rule = RecurrenceRule.with_count("TF", 4)
        events = rule.generate("PDP", START, END_TIME)
        assert [e.start.date() for e in events] == [
            dt.date(2025, 10, 7),
            dt.date(2025, 10, 10),
            dt.date(2025, 10, 14),
            dt.date(2025, 10, 17),
        ]
        for event in events:
            assert event.start.time() == dt.time(13, 35)
            assert event.end.time() == dt.time(15, 15)

    def test_emits_exactly_n_on_pattern_days(self) -> None:
        rule = RecurrenceRule.with_count("MWF", 7)
        events = rule.generate("Gym", START, END_TIME)
        assert len(events) == 7
        assert all(Weekday.of(e.start.date()) in rule.weekdays for e in events)
        dates = [e.start.date() for e in events]
        assert dates == sorted(set(dates))

    def test_anchor_off_pattern_is_skipped(self) -> None:
        # Wednesday anchor, Tuesday/Friday pattern
        rule = RecurrenceRule.with_count("TF", 2)
        events = rule.generate("PDP", dt.datetime(2025, 10, 8, 13, 35), END_TIME)
        assert [e.start.date() for e in events] == [dt.date(2025, 10, 10), dt.date(2025, 10, 14)]

    def test_template_details_copied(self) -> None:
        rule = RecurrenceRule.with_count("T", 2)
        events = rule.generate("PDP", START, END_TIME, location="Lab", description="d",
                               status=EventStatus.PRIVATE)
        assert all(e.location == "Lab" and e.status is EventStatus.PRIVATE for e in events)

    @pytest.mark.parametrize("bad", [0, -1, 2.5, True])
    def test_count_must_be_positive_int(self, bad) -> None:
        with pytest.raises(InvalidFormatError):
            RecurrenceRule.with_count("T", bad)


class TestEndDateRule:
    """Tests for end-date-bound generation."""

    def test_until_is_inclusive(self) -> None:
        rule = RecurrenceRule.with_end_date("TF", dt.date(2025, 10, 17))
        events = rule.generate("PDP", START, END_TIME)
        assert [e.start.date() for e in events][-1] == dt.date(2025, 10, 17)
        assert len(events) == 4

    def test_nothing_after_end_date(self) -> None:
        rule = RecurrenceRule.with_end_date("MTWRFSU", dt.date(2025, 10, 9))
        events = rule.generate("Daily", START, END_TIME)
        assert [e.start.date() for e in events] == [
            dt.date(2025, 10, 7), dt.date(2025, 10, 8), dt.date(2025, 10, 9),
        ]

    def test_end_before_start_generates_nothing(self) -> None:
        rule = RecurrenceRule.with_end_date("T", dt.date(2025, 10, 1))
        assert rule.generate("PDP", START, END_TIME) == []


class TestRuleOperations:
    """Tests for decrement, clone and accessors."""

    def test_decrement_count(self) -> None:
        rule = RecurrenceRule.with_count("T", 3)
        rule.decrement()
        assert rule.termination == Count(2)
        assert rule.occurrences == 2
        assert rule.end_date is None

    def test_decrement_stops_at_zero(self) -> None:
        rule = RecurrenceRule.with_count("T", 1)
        rule.decrement()
        rule.decrement()
        assert rule.occurrences == 0

    def test_decrement_end_date_is_noop(self) -> None:
        rule = RecurrenceRule.with_end_date("T", dt.date(2025, 12, 31))
        rule.decrement()
        assert rule.termination == EndDate(dt.date(2025, 12, 31))
        assert rule.occurrences is None

    def test_clone_has_fresh_id(self) -> None:
        rule = RecurrenceRule.with_count("TF", 4)
        clone = rule.clone()
        assert clone.id != rule.id
        assert clone.weekdays == rule.weekdays
        assert clone.termination == rule.termination

    def test_rules_compare_by_identity(self) -> None:
        a = RecurrenceRule.with_count("TF", 4)
        b = RecurrenceRule(a.weekdays, a.termination)
        assert a != b
        assert len({a, b}) == 2

    def test_invalid_termination(self) -> None:
        with pytest.raises(InvalidFormatError):
            RecurrenceRule("T", 4)  # type: ignore[arg-type]
