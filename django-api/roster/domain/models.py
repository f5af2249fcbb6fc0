"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in roster/models.py (persistence layer).

Aggregates are immutable: allocation functions return a new Event
rather than mutating the one they were given.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from roster.domain.value_objects import Capacity, EventId, TimeWindow


@dataclass(frozen=True)
class Standard:
    """An ordinary event: anyone may sign up while it is open."""


@dataclass(frozen=True)
class Seasonal:
    """An event reserved for core members until ``priority_cutoff``."""

    priority_cutoff: datetime


EventKind = Standard | Seasonal


@dataclass(frozen=True)
class Registration:
    """Seats held by one subject in either the main list or the waitlist."""

    subject: str
    display_name: str
    quantity: int
    priority: bool = False

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("Registration quantity must be at least 1")

    def with_quantity(self, quantity: int) -> "Registration":
        return replace(self, quantity=quantity)


@dataclass(frozen=True)
class CoreMember:
    """A subject granted priority admission to seasonal events."""

    subject: str
    display_name: str = ""


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event (the roster aggregate)."""

    id: EventId
    scope: str
    kind: EventKind
    window: TimeWindow
    capacity: Capacity
    created_at: datetime
    title: str = ""
    location: str = ""
    waitlist_capacity: Capacity | None = None
    signup_cutoff: timedelta = timedelta(0)
    participants: tuple[Registration, ...] = ()
    waitlist: tuple[Registration, ...] = ()
    reminder_sent_at: datetime | None = None
    version: int = 0

    @property
    def is_seasonal(self) -> bool:
        return isinstance(self.kind, Seasonal)

    @property
    def reminder_sent(self) -> bool:
        return self.reminder_sent_at is not None

    @property
    def participant_total(self) -> int:
        return sum(r.quantity for r in self.participants)

    @property
    def waitlist_total(self) -> int:
        return sum(r.quantity for r in self.waitlist)

    @property
    def available_seats(self) -> int:
        return max(0, self.capacity.value - self.participant_total)

    def find_participant(self, subject: str) -> Registration | None:
        return _find(self.participants, subject)

    def find_waitlisted(self, subject: str) -> Registration | None:
        return _find(self.waitlist, subject)

    def holding_of(self, subject: str) -> int:
        """Total seats the subject holds across both containers."""
        return sum(
            r.quantity for r in self.participants + self.waitlist if r.subject == subject
        )


def _find(entries: tuple[Registration, ...], subject: str) -> Registration | None:
    for entry in entries:
        if entry.subject == subject:
            return entry
    return None
