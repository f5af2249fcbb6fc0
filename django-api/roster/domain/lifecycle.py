"""Time-driven lifecycle of an event.

Pure functions of the event and ``now``; callers supply the instant so the
rules stay deterministic under test.
"""

from datetime import datetime
from enum import Enum

from roster.domain.errors import (
    EventExpiredError,
    PriorityWindowActiveError,
    SignupWindowClosedError,
)
from roster.domain.membership import MembershipLookup
from roster.domain.models import Event, Seasonal


class EventStatus(Enum):
    PRIORITY_ONLY = "priority_only"
    OPEN = "open"
    SIGNUP_CLOSED = "signup_closed"
    EXPIRED = "expired"


def signup_closes_at(event: Event) -> datetime:
    return event.window.start + event.signup_cutoff


def status_of(event: Event, now: datetime) -> EventStatus:
    """Return the lifecycle status of ``event`` at ``now``.

    Expiry wins over every other state, so a seasonal event whose priority
    cutoff lies past its end still reads as expired once it is over.
    """
    if event.window.has_ended(now):
        return EventStatus.EXPIRED
    if isinstance(event.kind, Seasonal) and now < event.kind.priority_cutoff:
        return EventStatus.PRIORITY_ONLY
    if now >= signup_closes_at(event):
        return EventStatus.SIGNUP_CLOSED
    return EventStatus.OPEN


def is_open(event: Event, now: datetime) -> bool:
    return status_of(event, now) is not EventStatus.EXPIRED


def can_admit(
    event: Event, subject: str, now: datetime, registry: MembershipLookup
) -> bool:
    status = status_of(event, now)
    if status is EventStatus.OPEN:
        return True
    return status is EventStatus.PRIORITY_ONLY and registry.is_member(subject)


def ensure_mutable(event: Event, now: datetime) -> None:
    """Raise EventExpiredError if the event can no longer change."""
    if status_of(event, now) is EventStatus.EXPIRED:
        raise EventExpiredError(str(event.id))


def ensure_admissible(
    event: Event, subject: str, now: datetime, registry: MembershipLookup
) -> None:
    """Raise the domain error explaining why ``subject`` cannot be admitted.

    Raises:
        EventExpiredError: The event window has ended.
        SignupWindowClosedError: The signup cutoff has passed.
        PriorityWindowActiveError: Seasonal priority window and not a member.
    """
    status = status_of(event, now)
    if status is EventStatus.EXPIRED:
        raise EventExpiredError(str(event.id))
    if status is EventStatus.SIGNUP_CLOSED:
        raise SignupWindowClosedError(str(event.id))
    if status is EventStatus.PRIORITY_ONLY and not registry.is_member(subject):
        raise PriorityWindowActiveError(str(event.id), subject)
