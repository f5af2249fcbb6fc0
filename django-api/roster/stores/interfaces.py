"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TypeVar

from roster.domain import CoreMember, Event, EventId

T = TypeVar("T")

Mutation = Callable[[Event], tuple[Event, T]]


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def list_events(self, scope: str | None = None) -> list[Event]:
        """Return events ordered by window start ascending.

        With ``scope`` set, only events owned by that conversation.
        """
        ...

    @abstractmethod
    def get_event(self, event_id: EventId) -> Event | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def add_event(self, event: Event) -> Event:
        """Persist a new event and return the stored snapshot."""
        ...

    @abstractmethod
    def delete_event(self, event_id: EventId) -> bool:
        """Remove an event. Return False if it did not exist."""
        ...

    @abstractmethod
    def mutate(self, event_id: EventId, fn: Mutation[T]) -> tuple[Event, T]:
        """Atomically load an event, apply ``fn`` and persist the result.

        At most one mutator runs per event at a time. If ``fn`` raises,
        nothing is persisted and the exception propagates.

        Raises:
            EventNotFoundError: No event with this ID.
            ConflictError: A concurrent write was detected; retryable.
        """
        ...


class MembershipRegistry(ABC):
    """Interface for the process-wide set of core members."""

    @abstractmethod
    def add(self, subject: str, display_name: str = "") -> CoreMember:
        """Grant priority status. Re-adding updates the display name only."""
        ...

    @abstractmethod
    def remove(self, subject: str) -> bool:
        """Revoke priority status. Return False if not a member."""
        ...

    @abstractmethod
    def is_member(self, subject: str) -> bool:
        ...

    @abstractmethod
    def list(self) -> list[CoreMember]:
        """Return members in the order they were added."""
        ...
