"""
Event store for one calendar.

Holds the canonical set of events, keeps identity keys unique and records
which recurrence rule (if any) each event belongs to.

Storage layout:
- an arena of StoredEvent entries keyed by a generated entry id; each entry
  carries its event, its owning rule id (None for standalone events) and
  its handle in the interval index
- an identity index (subject, start, end) -> entry id
- the live rules by rule id

Every query returns an immutable tuple sorted by start time; no live views
of the internal state are handed out. Multi-step mutations validate first
and only then touch the store, so a failed call leaves it unchanged.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable, Iterable, Optional

from .debug_log import debug_print
from .errors import AlreadyExistsError, EventNotFoundError, UnsupportedOperationError
from .event import Event, EventProperty, EventStatus, sort_key
from .interval_tree import IntervalHandle, IntervalTree
from .recurrence import RecurrenceRule
from .timezone_utils import end_of_day, start_of_day


def _debug_print(msg: str) -> None:
    debug_print("STORE", msg)


SERIES_SPAN_MESSAGE = "Series event cannot span more than one day"


@dataclass
class StoredEvent:
    """Arena entry for one stored event."""
    entry_id: str
    event: Event
    rule_id: Optional[str]
    handle: IntervalHandle


class EventStore:
    """
    Canonical event storage with recurrence membership tracking.
    """

    def __init__(self):
        self._entries: dict[str, StoredEvent] = {}
        self._ids_by_key: dict[tuple, str] = {}
        self._rules: dict[str, RecurrenceRule] = {}
        self._index: IntervalTree[datetime] = IntervalTree()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, event: Event) -> bool:
        return event.key in self._ids_by_key

    # ==================== Internal Bookkeeping ====================

    def _entry_for(self, event: Event) -> StoredEvent:
        entry_id = self._ids_by_key.get(event.key)
        if entry_id is None:
            raise EventNotFoundError(f"Event not found: {event!r}")
        return self._entries[entry_id]

    def _insert(self, event: Event, rule_id: Optional[str] = None) -> StoredEvent:
        entry_id = uuid.uuid4().hex
        handle = self._index.insert(event.start, event.end, entry_id)
        entry = StoredEvent(entry_id=entry_id, event=event, rule_id=rule_id, handle=handle)
        self._entries[entry_id] = entry
        self._ids_by_key[event.key] = entry_id
        return entry

    def _delete(self, entry: StoredEvent) -> None:
        self._index.delete(entry.handle)
        del self._entries[entry.entry_id]
        del self._ids_by_key[entry.event.key]

    def _member_count(self, rule_id: str) -> int:
        return sum(1 for entry in self._entries.values() if entry.rule_id == rule_id)

    def _discard_rule_if_empty(self, rule_id: Optional[str]) -> None:
        if rule_id is None or rule_id not in self._rules:
            return
        if self._member_count(rule_id) == 0:
            rule = self._rules.pop(rule_id)
            _debug_print(f"Discarded empty rule {rule!r}")

    def _snapshot(self, entries: Iterable[StoredEvent]) -> tuple:
        return tuple(sorted((entry.event for entry in entries), key=sort_key))

    def ensure_absent(self, events: Iterable[Event], replacing: Iterable[Event] = ()) -> None:
        """
        Check that events can be inserted without an identity collision.

        Args:
            events: events about to be inserted.
            replacing: stored events that will be removed in the same
                operation; their keys count as free.

        Raises:
            AlreadyExistsError: if a key is taken by a stored event that is
                not being replaced, or appears twice in events.
        """
        freed = {event.key for event in replacing}
        seen = set()
        for event in events:
            if event.key in seen:
                raise AlreadyExistsError(f"Event already exists: {event!r}")
            seen.add(event.key)
            if event.key in self._ids_by_key and event.key not in freed:
                raise AlreadyExistsError(f"Event already exists: {event!r}")

    # ==================== Insertion ====================

    def add_single(self, event: Event) -> Event:
        """
        Add a standalone event.

        Raises:
            AlreadyExistsError: if an event with the same identity exists.
        """
        if event.key in self._ids_by_key:
            raise AlreadyExistsError(f"Event already exists: {event!r}")
        self._insert(event)
        _debug_print(f"Added {event!r}")
        return event

    def add_events(self, events: Iterable[Event]) -> tuple:
        """Add standalone events, all or nothing."""
        events = list(events)
        self.ensure_absent(events)
        for event in events:
            self._insert(event)
        _debug_print(f"Added {len(events)} standalone events")
        return tuple(events)

    def add_series(
        self,
        rule: RecurrenceRule,
        subject: str,
        start: datetime,
        end_time: time,
        location: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[EventStatus] = None,
    ) -> tuple:
        """
        Generate the events of rule and store them under it.

        None of the generated events may already exist; otherwise nothing is
        inserted.

        Returns:
            The generated events, in date order.
        """
        events = rule.generate(subject, start, end_time,
                               location=location, description=description, status=status)
        self.ensure_absent(events)
        self._rules[rule.id] = rule
        for event in events:
            self._insert(event, rule.id)
        _debug_print(f"Added series {rule!r} with {len(events)} events")
        return tuple(events)

    def attach_to_rule(self, rule: RecurrenceRule, events: Iterable[Event]) -> None:
        """
        Register rule and make events its members.

        Events already stored are re-pointed at rule; absent events are
        inserted. Rules left without members by the move are discarded.
        """
        events = list(events)
        self._rules[rule.id] = rule
        previous_rules = set()
        for event in events:
            entry_id = self._ids_by_key.get(event.key)
            if entry_id is None:
                self._insert(event, rule.id)
            else:
                entry = self._entries[entry_id]
                previous_rules.add(entry.rule_id)
                entry.rule_id = rule.id
        for rule_id in previous_rules:
            if rule_id != rule.id:
                self._discard_rule_if_empty(rule_id)
        _debug_print(f"Attached {len(events)} events to {rule!r}")

    # ==================== Removal ====================

    def remove_events(self, events: Iterable[Event]) -> None:
        """Remove events (and their membership). Unknown events are ignored."""
        touched_rules = set()
        for event in events:
            entry_id = self._ids_by_key.get(event.key)
            if entry_id is None:
                continue
            entry = self._entries[entry_id]
            touched_rules.add(entry.rule_id)
            self._delete(entry)
        for rule_id in touched_rules:
            self._discard_rule_if_empty(rule_id)

    def remove_rule(self, rule: RecurrenceRule) -> None:
        """Forget rule; its remaining members become standalone events."""
        for entry in self._entries.values():
            if entry.rule_id == rule.id:
                entry.rule_id = None
        self._rules.pop(rule.id, None)

    # ==================== Replacement ====================

    def check_replace(self, old: Event, new: Event, changed_property) -> None:
        """
        Check that replace(old, new, changed_property) would succeed,
        without changing anything.

        Raises:
            EventNotFoundError: if old is not stored.
            AlreadyExistsError: if the edit changes the identity to one that
                is already taken.
            UnsupportedOperationError: if a series member would span more
                than one day.
        """
        changed_property = EventProperty.parse(changed_property)
        entry = self._entry_for(old)
        if changed_property.changes_identity and new.key != old.key and new.key in self._ids_by_key:
            raise AlreadyExistsError(f"Event already exists: {new!r}")
        if entry.rule_id is not None and not new.is_single_day:
            raise UnsupportedOperationError(SERIES_SPAN_MESSAGE)

    def replace(self, old: Event, new: Event, changed_property) -> Event:
        """
        Replace a stored event by an edited copy.

        Series members stay on a single local date. Moving a member's start
        to a different date detaches it from its rule, which then counts one
        occurrence less. Fails like check_replace().
        """
        changed_property = EventProperty.parse(changed_property)
        self.check_replace(old, new, changed_property)
        entry = self._entry_for(old)
        old = entry.event

        rule_id = entry.rule_id
        self._delete(entry)
        if rule_id is not None and changed_property == EventProperty.START \
                and old.start.date() != new.start.date():
            self._rules[rule_id].decrement()
            self._insert(new)
            self._discard_rule_if_empty(rule_id)
            _debug_print(f"Detached {new!r} from rule {rule_id[:8]}")
        else:
            self._insert(new, rule_id)
        return new

    def check_replace_many(self, olds: list[Event], news: list[Event], changed_property) -> None:
        """Check that replace_many() would succeed, without changing anything."""
        changed_property = EventProperty.parse(changed_property)
        if len(olds) != len(news):
            raise ValueError("replace_many() needs as many new events as old ones")
        entries = [self._entry_for(old) for old in olds]
        if changed_property.changes_identity:
            self.ensure_absent(news, replacing=[entry.event for entry in entries])
        for entry, new in zip(entries, news):
            if entry.rule_id is not None and not new.is_single_day:
                raise UnsupportedOperationError(SERIES_SPAN_MESSAGE)

    def replace_many(self, olds: list[Event], news: list[Event], changed_property) -> tuple:
        """
        Replace several stored events at once, keeping their membership.

        olds[i] is replaced by news[i]. Collisions are checked for the whole
        batch before anything changes.
        """
        self.check_replace_many(olds, news, changed_property)
        entries = [self._entry_for(old) for old in olds]

        rule_ids = [entry.rule_id for entry in entries]
        for entry in entries:
            self._delete(entry)
        for rule_id, new in zip(rule_ids, news):
            self._insert(new, rule_id)
        return tuple(news)

    def rewrite_all(self, transform: Callable[[Event], Event]) -> int:
        """
        Re-express every stored event through transform, keeping membership.

        Used when the wall clock of the whole store changes (timezone
        change). Only identity uniqueness is checked.

        Returns:
            Number of events rewritten.
        """
        entries = list(self._entries.values())
        rewritten = [(entry.rule_id, transform(entry.event)) for entry in entries]
        self.ensure_absent([event for _, event in rewritten],
                           replacing=[entry.event for entry in entries])
        for entry in entries:
            self._delete(entry)
        for rule_id, event in rewritten:
            self._insert(event, rule_id)
        return len(rewritten)

    # ==================== Queries ====================

    def all_events(self) -> tuple:
        return self._snapshot(self._entries.values())

    def filter(self, predicate: Callable[[Event], bool]) -> tuple:
        """All events matching predicate."""
        return self._snapshot(e for e in self._entries.values() if predicate(e.event))

    def find(self, subject: str, start: datetime, end: datetime) -> Event:
        """
        Find the event with the given identity.

        Raises:
            EventNotFoundError: if there is no such event.
        """
        entry_id = self._ids_by_key.get((subject, start, end))
        if entry_id is None:
            raise EventNotFoundError(
                f"Event not found: {subject!r} from {start.isoformat()} to {end.isoformat()}"
            )
        return self._entries[entry_id].event

    def find_starting_at(self, subject: str, start: datetime) -> tuple:
        """All events with the given subject and start."""
        return self.filter(lambda event: event.subject == subject and event.start == start)

    def _entries_intersecting(self, low: datetime, high: datetime) -> list[StoredEvent]:
        found = []
        self._index.find_intersecting(low, high, lambda handle: found.append(self._entries[handle.data]))
        return found

    def events_in_range(self, start: datetime, end: datetime) -> tuple:
        """Events overlapping [start, end] (bounds inclusive)."""
        return self._snapshot(self._entries_intersecting(start, end))

    def events_on_date(self, day: date) -> tuple:
        """Events whose span touches the given date."""
        return self.events_between_dates(day, day)

    def events_between_dates(self, first: date, last: date) -> tuple:
        """Events whose span touches any date in [first, last]."""
        return self._snapshot(self._entries_intersecting(start_of_day(first), end_of_day(last)))

    def events_at(self, instant: datetime) -> tuple:
        """Events in progress at instant (start and end inclusive)."""
        found = []
        self._index.find_overlapping(instant, lambda handle: found.append(self._entries[handle.data]))
        return self._snapshot(found)

    def standalone_between(self, first: date, last: date) -> tuple:
        """Standalone events touching [first, last]."""
        entries = self._entries_intersecting(start_of_day(first), end_of_day(last))
        return self._snapshot(entry for entry in entries if entry.rule_id is None)

    def series_between(self, first: date, last: date) -> dict:
        """
        Series members touching [first, last], grouped by rule.

        Returns:
            dict of RecurrenceRule -> tuple of events sorted by start.
        """
        grouped: dict[str, list[StoredEvent]] = {}
        for entry in self._entries_intersecting(start_of_day(first), end_of_day(last)):
            if entry.rule_id is not None:
                grouped.setdefault(entry.rule_id, []).append(entry)
        return {self._rules[rule_id]: self._snapshot(entries) for rule_id, entries in grouped.items()}

    # ==================== Membership ====================

    def rules(self) -> tuple:
        return tuple(self._rules.values())

    def rule_of(self, event: Event) -> Optional[RecurrenceRule]:
        """The rule owning event, or None for standalone events."""
        entry = self._entry_for(event)
        if entry.rule_id is None:
            return None
        return self._rules[entry.rule_id]

    def require_rule(self, event: Event) -> RecurrenceRule:
        """
        The rule owning event.

        Raises:
            EventNotFoundError: if event is not stored or is standalone.
        """
        rule = self.rule_of(event)
        if rule is None:
            raise EventNotFoundError(f"Event is not part of a series: {event!r}")
        return rule

    def is_in_series(self, event: Event) -> bool:
        entry_id = self._ids_by_key.get(event.key)
        return entry_id is not None and self._entries[entry_id].rule_id is not None

    def members(
        self,
        rule: RecurrenceRule,
        starting_from: Optional[datetime] = None,
        before: Optional[datetime] = None,
    ) -> tuple:
        """
        Members of rule, optionally limited to those starting at or after
        starting_from and/or strictly before `before`.
        """
        def selected(entry: StoredEvent) -> bool:
            if entry.rule_id != rule.id:
                return False
            if starting_from is not None and entry.event.start < starting_from:
                return False
            if before is not None and entry.event.start >= before:
                return False
            return True

        return self._snapshot(entry for entry in self._entries.values() if selected(entry))

    def member_starting_at(self, rule: RecurrenceRule, start: datetime) -> Optional[Event]:
        for entry in self._entries.values():
            if entry.rule_id == rule.id and entry.event.start == start:
                return entry.event
        return None

    def rules_of(self, events: Iterable[Event]) -> list[RecurrenceRule]:
        """Distinct rules owning any of events, in first-seen order."""
        result = []
        for event in events:
            rule = self.rule_of(event)
            if rule is not None and rule not in result:
                result.append(rule)
        return result
