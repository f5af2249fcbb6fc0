"""Seat allocation for a single event.

Every function takes an Event and returns a new Event together with a result
describing what happened. Nothing here touches storage; the store decides
when the returned aggregate is persisted.
"""

from dataclasses import dataclass, replace
from datetime import datetime

from roster.domain.errors import InvalidQuantityError, NotRegisteredError
from roster.domain.lifecycle import ensure_admissible, ensure_mutable
from roster.domain.membership import MembershipLookup
from roster.domain.models import Event, Registration


@dataclass(frozen=True)
class AdmitResult:
    """Where the requested seats ended up."""

    main_added: int
    wait_added: int
    rejected: int

    @property
    def requested(self) -> int:
        return self.main_added + self.wait_added + self.rejected

    @property
    def capacity_exceeded(self) -> bool:
        return self.rejected > 0


@dataclass(frozen=True)
class WithdrawResult:
    """Seats released by a withdrawal and the promotions it triggered."""

    from_waitlist: int
    from_participants: int
    promoted: tuple[Registration, ...] = ()

    @property
    def released(self) -> int:
        return self.from_waitlist + self.from_participants


def admit(
    event: Event,
    subject: str,
    display_name: str,
    quantity: int,
    now: datetime,
    registry: MembershipLookup,
) -> tuple[Event, AdmitResult]:
    """Add ``quantity`` seats for ``subject``, overflowing into the waitlist.

    Raises:
        InvalidQuantityError: quantity below 1.
        EventExpiredError, SignupWindowClosedError, PriorityWindowActiveError:
            the lifecycle forbids admission at ``now``.
    """
    if quantity < 1:
        raise InvalidQuantityError(quantity)
    ensure_admissible(event, subject, now, registry)

    to_main = min(quantity, event.available_seats)
    participants = _merge_or_append(event.participants, subject, display_name, to_main)

    leftover = quantity - to_main
    to_wait = leftover
    if event.waitlist_capacity is not None:
        room = max(0, event.waitlist_capacity.value - event.waitlist_total)
        to_wait = min(leftover, room)
    waitlist = _merge_or_append(event.waitlist, subject, display_name, to_wait)

    result = AdmitResult(main_added=to_main, wait_added=to_wait, rejected=leftover - to_wait)
    return replace(event, participants=participants, waitlist=waitlist), result


def withdraw(
    event: Event, subject: str, quantity: int, now: datetime
) -> tuple[Event, WithdrawResult]:
    """Release up to ``quantity`` seats held by ``subject``.

    Waitlisted seats go first so that confirmed seats are kept as long as
    possible. Freed main-list seats are refilled from the head of the
    waitlist.

    Raises:
        InvalidQuantityError: quantity below 1.
        EventExpiredError: the event is over.
        NotRegisteredError: the subject holds no seats.
    """
    if quantity < 1:
        raise InvalidQuantityError(quantity)
    ensure_mutable(event, now)
    if not event.holding_of(subject):
        raise NotRegisteredError(str(event.id), subject)

    waitlist, from_waitlist = _deduct(event.waitlist, subject, quantity)
    participants, from_participants = _deduct(
        event.participants, subject, quantity - from_waitlist
    )

    promoted_event, promoted = promote(
        replace(event, participants=participants, waitlist=waitlist)
    )
    result = WithdrawResult(
        from_waitlist=from_waitlist,
        from_participants=from_participants,
        promoted=promoted,
    )
    return promoted_event, result


def promote(event: Event) -> tuple[Event, tuple[Registration, ...]]:
    """Refill free main-list seats from the front of the waitlist.

    A head entry larger than the free space is split: the promoted part joins
    the main list and the rest stays at the head of the queue.
    """
    participants = event.participants
    waitlist = list(event.waitlist)
    total = event.participant_total
    capacity = event.capacity.value
    moved: list[Registration] = []

    while total < capacity and waitlist:
        head = waitlist[0]
        take = min(head.quantity, capacity - total)
        participants = _merge_or_append(
            participants, head.subject, head.display_name, take, priority=head.priority
        )
        moved.append(head.with_quantity(take))
        total += take
        if take == head.quantity:
            waitlist.pop(0)
        else:
            waitlist[0] = head.with_quantity(head.quantity - take)
            break

    return replace(event, participants=participants, waitlist=tuple(waitlist)), tuple(moved)


def set_quantity(
    event: Event,
    subject: str,
    display_name: str,
    quantity: int,
    now: datetime,
    registry: MembershipLookup,
) -> tuple[Event, AdmitResult | WithdrawResult | None]:
    """Make ``subject`` hold ``quantity`` seats in total.

    Admits or withdraws the difference from the current holding. Returns
    ``None`` as the result when the holding already matches.
    """
    if quantity < 1:
        raise InvalidQuantityError(quantity)
    held = event.holding_of(subject)
    if quantity > held:
        return admit(event, subject, display_name, quantity - held, now, registry)
    if quantity < held:
        return withdraw(event, subject, held - quantity, now)
    ensure_mutable(event, now)
    return event, None


def _merge_or_append(
    entries: tuple[Registration, ...],
    subject: str,
    display_name: str,
    quantity: int,
    priority: bool = False,
) -> tuple[Registration, ...]:
    if quantity <= 0:
        return entries
    merged = []
    found = False
    for entry in entries:
        if entry.subject == subject:
            entry = entry.with_quantity(entry.quantity + quantity)
            found = True
        merged.append(entry)
    if not found:
        merged.append(
            Registration(
                subject=subject,
                display_name=display_name,
                quantity=quantity,
                priority=priority,
            )
        )
    return tuple(merged)


def _deduct(
    entries: tuple[Registration, ...], subject: str, quantity: int
) -> tuple[tuple[Registration, ...], int]:
    """Remove up to ``quantity`` seats from the subject's entry."""
    if quantity <= 0:
        return entries, 0
    remaining = []
    taken = 0
    for entry in entries:
        if entry.subject == subject and not taken:
            taken = min(entry.quantity, quantity)
            if entry.quantity > taken:
                remaining.append(entry.with_quantity(entry.quantity - taken))
            continue
        remaining.append(entry)
    return tuple(remaining), taken
