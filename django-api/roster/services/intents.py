"""Structured commands accepted by EventService.

Text parsing happens in the transport; by the time an Intent exists every
field is typed.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from roster.domain import Event, EventId
from roster.domain.allocation import AdmitResult, WithdrawResult


class Operation(Enum):
    CREATE = "create"
    ADMIT = "admit"
    WITHDRAW = "withdraw"
    DELETE = "delete"


@dataclass(frozen=True)
class ById:
    event_id: EventId


@dataclass(frozen=True)
class ByDate:
    """Match the open event starting on this local date."""

    day: date


@dataclass(frozen=True)
class SingleOpen:
    """The only open event in scope."""


Selector = ById | ByDate | SingleOpen


@dataclass(frozen=True)
class EventDraft:
    """Fields for a Create intent. Unset values fall back to settings."""

    starts_at: datetime
    ends_at: datetime
    title: str = ""
    location: str = ""
    capacity: int | None = None
    waitlist_capacity: int | None = None
    signup_cutoff: timedelta | None = None
    priority_cutoff: datetime | None = None


@dataclass(frozen=True)
class Intent:
    operation: Operation
    scope: str
    selector: Selector = field(default_factory=SingleOpen)
    subject: str = ""
    display_name: str = ""
    quantity: int = 1
    now: datetime | None = None
    draft: EventDraft | None = None


@dataclass(frozen=True)
class IntentOutcome:
    operation: Operation
    event: Event | None
    result: AdmitResult | WithdrawResult | None = None
