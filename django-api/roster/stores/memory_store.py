"""In-memory stores.

Thread-safe and deterministic; used by tests and for running the service
without a database.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace

from roster.domain import CoreMember, Event, EventId
from roster.domain.errors import EventNotFoundError
from roster.stores.interfaces import EventStore, MembershipRegistry, Mutation, T

logger = logging.getLogger("roster.stores")


class InMemoryEventStore(EventStore):
    """Dict-backed event store with one lock per event."""

    def __init__(self, events: tuple[Event, ...] = ()) -> None:
        self._guard = threading.Lock()
        self._events: dict[EventId, Event] = {}
        self._locks: dict[EventId, threading.Lock] = {}
        for event in events:
            self.add_event(event)

    def _lock_for(self, event_id: EventId) -> threading.Lock | None:
        with self._guard:
            return self._locks.get(event_id)

    def _holds(self, event_id: EventId, lock: threading.Lock) -> bool:
        """True if ``lock`` still guards a stored event.

        Caller holds ``self._guard``.
        """
        return self._locks.get(event_id) is lock and event_id in self._events

    def list_events(self, scope: str | None = None) -> list[Event]:
        with self._guard:
            events = list(self._events.values())
        if scope is not None:
            events = [e for e in events if e.scope == scope]
        return sorted(events, key=lambda e: (e.window.start, e.created_at))

    def get_event(self, event_id: EventId) -> Event | None:
        with self._guard:
            return self._events.get(event_id)

    def add_event(self, event: Event) -> Event:
        with self._guard:
            self._events[event.id] = event
            self._locks.setdefault(event.id, threading.Lock())
        return event

    def delete_event(self, event_id: EventId) -> bool:
        lock = self._lock_for(event_id)
        if lock is None:
            return False
        with lock:
            with self._guard:
                if not self._holds(event_id, lock):
                    return False
                del self._events[event_id]
                del self._locks[event_id]
                return True

    def mutate(self, event_id: EventId, fn: Mutation[T]) -> tuple[Event, T]:
        lock = self._lock_for(event_id)
        if lock is None:
            raise EventNotFoundError(str(event_id))
        with lock:
            with self._guard:
                if not self._holds(event_id, lock):
                    raise EventNotFoundError(str(event_id))
                current = self._events[event_id]
            updated, outcome = fn(current)
            stored = replace(updated, version=current.version + 1)
            with self._guard:
                self._events[event_id] = stored
            logger.debug("Stored event %s at version %d", event_id, stored.version)
            return stored, outcome


class InMemoryMembershipRegistry(MembershipRegistry):
    """Insertion-ordered core membership."""

    def __init__(self, members: tuple[CoreMember, ...] = ()) -> None:
        self._lock = threading.Lock()
        self._members: dict[str, CoreMember] = {m.subject: m for m in members}

    def add(self, subject: str, display_name: str = "") -> CoreMember:
        with self._lock:
            member = CoreMember(subject=subject, display_name=display_name)
            self._members[subject] = member
            return member

    def remove(self, subject: str) -> bool:
        with self._lock:
            return self._members.pop(subject, None) is not None

    def is_member(self, subject: str) -> bool:
        with self._lock:
            return subject in self._members

    def list(self) -> list[CoreMember]:
        with self._lock:
            return list(self._members.values())
