"""
Series-aware editing.

Applies a property change to one event, to an event and the rest of its
series, or to a whole series. Changing the start of "this and following"
splits the series: earlier members keep their dates under a rule that ends
the day before the pivot, and the later part is regenerated from the new
anchor and the weekday pattern under a fresh rule of the same kind.

Every edit is first planned: the replacement events are built and checked
against the store, and nothing changes until the plan is applied.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from .debug_log import debug_print
from .errors import EventNotFoundError, UnsupportedOperationError
from .event import Event, EventProperty
from .event_editor import EventEditor
from .event_store import EventStore, SERIES_SPAN_MESSAGE
from .recurrence import Count, EndDate, RecurrenceRule
from .timezone_utils import parse_datetime


def _debug_print(msg: str) -> None:
    debug_print("SERIES", msg)


@dataclass(frozen=True)
class EditPlan:
    """
    A checked edit that has not touched the store yet.

    removed are the stored events the edit takes out, added the events it
    puts in. apply() performs the edit.
    """
    removed: tuple
    added: tuple
    apply: Callable[[], Any]


class SeriesSplitter:
    """Edit-scope protocol over one EventStore."""

    def __init__(self, store: EventStore, editor: EventEditor):
        self._store = store
        self._editor = editor

    # ==================== Single Instance ====================

    def edit_single(self, event: Event, prop, new_value: Any) -> Event:
        """
        Edit one stored event.

        A new start keeps the event's duration. A new end must not precede
        the start.

        Returns:
            The stored replacement.
        """
        return self.plan_single(event, prop, new_value).apply()

    def plan_single(self, event: Event, prop, new_value: Any) -> EditPlan:
        prop = EventProperty.parse(prop)
        new_event = self._editor.edit(event, prop, new_value)
        if prop == EventProperty.START:
            new_event = new_event.with_changes(end=new_event.start + event.duration)
        elif prop in (EventProperty.END, EventProperty.END_TIME):
            if new_event.end < new_event.start:
                raise UnsupportedOperationError("Event end time cannot be before start time")
        self._store.check_replace(event, new_event, prop)
        return EditPlan(
            removed=(event,),
            added=(new_event,),
            apply=lambda: self._store.replace(event, new_event, prop),
        )

    # ==================== This And Following ====================

    def edit_following(self, rule: RecurrenceRule, prop, pivot_start: datetime, new_value: Any) -> None:
        """Edit the member of rule starting at pivot_start and every later member."""
        self.plan_following(rule, prop, pivot_start, new_value).apply()

    def plan_following(self, rule: RecurrenceRule, prop, pivot_start: datetime, new_value: Any) -> EditPlan:
        """
        Plan an edit of the member of rule starting at pivot_start and every
        later member.
        """
        prop = EventProperty.parse(prop)
        if prop == EventProperty.START:
            return self._plan_split(rule, pivot_start, parse_datetime(new_value))
        members = self._store.members(rule, starting_from=pivot_start)
        if prop in (EventProperty.END, EventProperty.END_TIME):
            return self._plan_end_times(members, pivot_start, new_value)
        return self._plan_property(members, prop, new_value)

    def _plan_split(self, rule: RecurrenceRule, pivot_start: datetime, new_start: datetime) -> EditPlan:
        pivot = self._store.member_starting_at(rule, pivot_start)
        if pivot is None:
            raise EventNotFoundError(f"No series event starts at {pivot_start.isoformat()}")
        past = self._store.members(rule, before=pivot_start)
        future = self._store.members(rule, starting_from=pivot_start)

        new_end = new_start + pivot.duration
        if new_end.date() != new_start.date():
            raise UnsupportedOperationError(SERIES_SPAN_MESSAGE)

        if isinstance(rule.termination, Count):
            future_rule = RecurrenceRule(rule.weekdays, Count(len(future)))
        else:
            future_rule = RecurrenceRule(rule.weekdays, EndDate(rule.termination.end_date))
        regenerated = tuple(
            self._editor.copy_details(event, pivot)
            for event in future_rule.generate(pivot.subject, new_start, new_end.time())
        )
        if not regenerated:
            raise UnsupportedOperationError(
                f"New start {new_start.date().isoformat()} leaves no occurrences before the series end"
            )
        self._store.ensure_absent(regenerated, replacing=future)

        def apply() -> None:
            if past:
                past_rule = RecurrenceRule(rule.weekdays, EndDate(pivot_start.date() - timedelta(days=1)))
                self._store.attach_to_rule(past_rule, past)
            self._store.remove_events(future)
            self._store.remove_rule(rule)
            self._store.attach_to_rule(future_rule, regenerated)
            _debug_print(
                f"Split {rule!r} at {pivot_start.isoformat()}: "
                f"{len(past)} kept, {len(future)} regenerated as {future_rule!r}"
            )

        return EditPlan(removed=future, added=regenerated, apply=apply)

    # ==================== Entire Series ====================

    def edit_all(self, rule: RecurrenceRule, prop, pivot_start: datetime, new_value: Any) -> None:
        self.plan_all(rule, prop, pivot_start, new_value).apply()

    def plan_all(self, rule: RecurrenceRule, prop, pivot_start: datetime, new_value: Any) -> EditPlan:
        """
        Plan an edit of every member of rule. pivot_start identifies the
        member the new value refers to.
        """
        prop = EventProperty.parse(prop)
        members = self._store.members(rule)
        if prop == EventProperty.START:
            return self._plan_shift(rule, members, pivot_start, parse_datetime(new_value))
        if prop in (EventProperty.END, EventProperty.END_TIME):
            return self._plan_end_times(members, pivot_start, new_value)
        return self._plan_property(members, prop, new_value)

    def _plan_shift(self, rule: RecurrenceRule, members: tuple, pivot_start: datetime,
                    new_start: datetime) -> EditPlan:
        if new_start.date() != pivot_start.date():
            raise UnsupportedOperationError("Cannot change date for the entire series")
        shift = new_start - pivot_start
        shifted = []
        for event in members:
            moved = event.shifted(shift)
            if moved.start.date() != event.start.date():
                raise UnsupportedOperationError("Cannot change date for the entire series")
            if not moved.is_single_day:
                raise UnsupportedOperationError(SERIES_SPAN_MESSAGE)
            shifted.append(moved)
        self._store.ensure_absent(shifted, replacing=members)

        def apply() -> None:
            clone = rule.clone()
            self._store.remove_events(members)
            self._store.remove_rule(rule)
            self._store.attach_to_rule(clone, shifted)
            _debug_print(f"Shifted {len(shifted)} events of {rule!r} by {shift}, now {clone!r}")

        return EditPlan(removed=members, added=tuple(shifted), apply=apply)

    # ==================== Shared Helpers ====================

    def _plan_end_times(self, members: tuple, pivot_start: datetime, new_value: Any) -> EditPlan:
        # A full date-time must stay on the pivot's date; only its time is used
        if isinstance(new_value, str) and ('T' in new_value or ' ' in new_value.strip()):
            new_value = parse_datetime(new_value)
        if isinstance(new_value, datetime):
            if new_value.date() != pivot_start.date():
                raise UnsupportedOperationError("A series event must not span more than one day")
            new_value = new_value.time()

        updated = [self._editor.edit(event, EventProperty.END_TIME, new_value) for event in members]
        for event in updated:
            if event.end < event.start:
                raise UnsupportedOperationError("Event end time cannot be before start time")
        return self._plan_replace(members, updated, EventProperty.END)

    def _plan_property(self, members: tuple, prop: EventProperty, new_value: Any) -> EditPlan:
        updated = [self._editor.edit(event, prop, new_value) for event in members]
        return self._plan_replace(members, updated, prop)

    def _plan_replace(self, members: tuple, updated: list, prop: EventProperty) -> EditPlan:
        self._store.check_replace_many(list(members), updated, prop)
        return EditPlan(
            removed=tuple(members),
            added=tuple(updated),
            apply=lambda: self._store.replace_many(list(members), updated, prop),
        )
