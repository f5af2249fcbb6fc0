"""Event service - all business logic orchestration lives here.

Services:
- Depend only on interfaces (stores, clock)
- Resolve selectors within a conversation scope
- Run allocation functions through the store's atomic mutate
- Retry store conflicts a bounded number of times
- Return domain models or raise domain errors
"""

import logging
from datetime import datetime
from functools import partial
from typing import Callable, TypeVar

from django.utils import timezone

from roster.clock import Clock, SystemClock
from roster.conf import roster_setting
from roster.domain import Capacity, CoreMember, Event, EventId, Seasonal, Standard, TimeWindow
from roster.domain import allocation
from roster.domain.errors import (
    AmbiguousSelectorError,
    ConflictError,
    EventExpiredError,
    EventNotFoundError,
    InvalidEventIdError,
    InvalidQuantityError,
    MemberNotFoundError,
)
from roster.domain.lifecycle import is_open
from roster.domain.membership import seed
from roster.services.intents import (
    ByDate,
    ById,
    EventDraft,
    Intent,
    IntentOutcome,
    Operation,
    Selector,
    SingleOpen,
)
from roster.signals import roster_changed
from roster.stores.interfaces import EventStore, MembershipRegistry, Mutation, T

logger = logging.getLogger("roster.services")

R = TypeVar("R")


class EventService:
    """Service for roster operations within conversation scopes."""

    def __init__(
        self,
        store: EventStore,
        registry: MembershipRegistry,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._clock = clock or SystemClock()

    def handle(self, intent: Intent) -> IntentOutcome:
        """Dispatch a structured intent to the matching operation."""
        now = intent.now or self._clock.now()
        if intent.operation is Operation.CREATE:
            if intent.draft is None:
                raise ValueError("Create intent requires a draft")
            event = self.create_event(intent.scope, intent.draft, now=now)
            return IntentOutcome(operation=Operation.CREATE, event=event)
        if intent.operation is Operation.ADMIT:
            return self.admit(
                intent.scope,
                intent.selector,
                intent.subject,
                intent.display_name,
                intent.quantity,
                now=now,
            )
        if intent.operation is Operation.WITHDRAW:
            return self.withdraw(
                intent.scope, intent.selector, intent.subject, intent.quantity, now=now
            )
        return self.delete_event(intent.scope, intent.selector, now=now)

    def create_event(
        self, scope: str, draft: EventDraft, now: datetime | None = None
    ) -> Event:
        """Create an event in ``scope``.

        Seasonal events (those with a priority cutoff) start out with the
        current core members seated.

        Raises:
            EventExpiredError: The window has already ended.
            ValueError: The window or capacities are invalid.
        """
        now = now or self._clock.now()
        window = TimeWindow(start=draft.starts_at, end=draft.ends_at)
        event_id = EventId.generate()
        if window.has_ended(now):
            raise EventExpiredError(str(event_id))

        kind = Seasonal(draft.priority_cutoff) if draft.priority_cutoff else Standard()
        signup_cutoff = draft.signup_cutoff
        if signup_cutoff is None:
            signup_cutoff = roster_setting("SIGNUP_CUTOFF")
        event = Event(
            id=event_id,
            scope=scope,
            kind=kind,
            window=window,
            capacity=Capacity(draft.capacity or roster_setting("DEFAULT_CAPACITY")),
            created_at=now,
            title=draft.title,
            location=draft.location,
            waitlist_capacity=(
                Capacity(draft.waitlist_capacity) if draft.waitlist_capacity else None
            ),
            signup_cutoff=signup_cutoff,
        )
        if isinstance(kind, Seasonal):
            event = seed(event, self._registry.list())

        stored = self._store.add_event(event)
        logger.info(
            "Created event %s in scope %s (%d seats)",
            stored.id, scope, stored.capacity.value,
        )
        self._changed(stored, Operation.CREATE)
        return stored

    def admit(
        self,
        scope: str,
        selector: Selector,
        subject: str,
        display_name: str,
        quantity: int,
        now: datetime | None = None,
    ) -> IntentOutcome:
        """Request seats for ``subject``.

        Under the absolute quantity policy ``quantity`` is the subject's new
        total rather than an increment.
        """
        now = now or self._clock.now()
        quantity = self._checked_quantity(quantity)
        target = self.resolve(scope, selector, now)

        if roster_setting("QUANTITY_POLICY") == "absolute":
            operation = partial(allocation.set_quantity, registry=self._registry)
        else:
            operation = partial(allocation.admit, registry=self._registry)
        event, result = self._mutate(
            target.id,
            lambda e: operation(e, subject, display_name or subject, quantity, now),
        )
        logger.info("Admit %s x%d on %s: %s", subject, quantity, event.id, result)
        self._changed(event, Operation.ADMIT)
        return IntentOutcome(operation=Operation.ADMIT, event=event, result=result)

    def withdraw(
        self,
        scope: str,
        selector: Selector,
        subject: str,
        quantity: int,
        now: datetime | None = None,
    ) -> IntentOutcome:
        now = now or self._clock.now()
        quantity = self._checked_quantity(quantity)
        target = self.resolve(scope, selector, now)
        event, result = self._mutate(
            target.id, lambda e: allocation.withdraw(e, subject, quantity, now)
        )
        logger.info("Withdraw %s x%d on %s: %s", subject, quantity, event.id, result)
        self._changed(event, Operation.WITHDRAW)
        return IntentOutcome(operation=Operation.WITHDRAW, event=event, result=result)

    def delete_event(
        self, scope: str, selector: Selector, now: datetime | None = None
    ) -> IntentOutcome:
        now = now or self._clock.now()
        target = self.resolve(scope, selector, now)
        if not self._store.delete_event(target.id):
            raise EventNotFoundError(str(target.id))
        logger.info("Deleted event %s from scope %s", target.id, scope)
        self._changed(target, Operation.DELETE)
        return IntentOutcome(operation=Operation.DELETE, event=None)

    def list_open_events(self, scope: str, now: datetime | None = None) -> list[Event]:
        """Return events in scope that have not expired, soonest first."""
        now = now or self._clock.now()
        events = self._retrying(scope, lambda: self._store.list_events(scope))
        return [e for e in events if is_open(e, now)]

    def get_event(self, event_id: str) -> Event:
        """Return an event by ID.

        Raises:
            InvalidEventIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        parsed = parse_event_id(event_id)
        event = self._retrying(str(parsed), lambda: self._store.get_event(parsed))
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def resolve(self, scope: str, selector: Selector, now: datetime) -> Event:
        """Find the event a selector points at within ``scope``.

        An explicit ID may name an expired event so that the caller gets
        EventExpiredError instead of a confusing not-found. Date and implicit
        selectors only consider open events.

        Raises:
            EventNotFoundError: Nothing matches.
            AmbiguousSelectorError: No event named and several are open.
        """
        if isinstance(selector, ById):
            event = self._retrying(
                str(selector.event_id), lambda: self._store.get_event(selector.event_id)
            )
            if event is None or event.scope != scope:
                raise EventNotFoundError(str(selector.event_id))
            return event

        open_events = self.list_open_events(scope, now)
        if isinstance(selector, ByDate):
            for event in open_events:
                if timezone.localdate(event.window.start) == selector.day:
                    return event
            raise EventNotFoundError(selector.day.isoformat())

        if isinstance(selector, SingleOpen):
            if not open_events:
                raise EventNotFoundError("open")
            if len(open_events) > 1:
                raise AmbiguousSelectorError(tuple(open_events))
            return open_events[0]

        raise TypeError(f"Unsupported selector: {selector!r}")

    def add_member(self, subject: str, display_name: str = "") -> CoreMember:
        member = self._registry.add(subject, display_name)
        logger.info("Granted core membership to %s", subject)
        return member

    def remove_member(self, subject: str) -> None:
        """Revoke core membership.

        Raises:
            MemberNotFoundError: The subject is not a core member.
        """
        if not self._registry.remove(subject):
            raise MemberNotFoundError(subject)
        logger.info("Revoked core membership of %s", subject)

    def list_members(self) -> list[CoreMember]:
        return self._registry.list()

    def _mutate(self, event_id: EventId, fn: Mutation[T]) -> tuple[Event, T]:
        return self._retrying(str(event_id), lambda: self._store.mutate(event_id, fn))

    def _retrying(self, target: str, call: Callable[[], R]) -> R:
        """Run a store call, retrying ConflictError a bounded number of times."""
        attempts = roster_setting("CONFLICT_RETRIES") + 1
        for attempt in range(1, attempts + 1):
            try:
                return call()
            except ConflictError:
                if attempt == attempts:
                    raise
                logger.warning(
                    "Conflict on %s, retrying (%d/%d)",
                    target, attempt, attempts - 1,
                )
        raise AssertionError("unreachable")

    def _checked_quantity(self, quantity: int) -> int:
        if quantity < 1:
            raise InvalidQuantityError(quantity)
        limit = roster_setting("MAX_QUANTITY")
        if quantity > limit:
            logger.info("Clamping quantity %d to %d", quantity, limit)
            return limit
        return quantity

    def _changed(self, event: Event, operation: Operation) -> None:
        roster_changed.send(
            sender=self.__class__,
            event_id=str(event.id),
            scope=event.scope,
            operation=operation.value,
        )


def parse_event_id(event_id: str) -> EventId:
    """Parse a UUID string.

    Raises:
        InvalidEventIdError: Not a valid UUID.
    """
    try:
        return EventId.from_string(event_id)
    except (ValueError, AttributeError, TypeError):
        raise InvalidEventIdError() from None
