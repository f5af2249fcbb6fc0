from roster.domain.lifecycle import EventStatus
from roster.domain.models import CoreMember, Event, EventKind, Registration, Seasonal, Standard
from roster.domain.value_objects import Capacity, EventId, TimeWindow

__all__ = [
    "Event",
    "EventKind",
    "Standard",
    "Seasonal",
    "Registration",
    "CoreMember",
    "EventStatus",
    "EventId",
    "Capacity",
    "TimeWindow",
]
