from roster.services.event_service import EventService
from roster.services.intents import (
    ByDate,
    ById,
    EventDraft,
    Intent,
    IntentOutcome,
    Operation,
    SingleOpen,
)
from roster.services.reminder_service import ReminderService

__all__ = [
    "EventService",
    "ReminderService",
    "Intent",
    "IntentOutcome",
    "Operation",
    "EventDraft",
    "ById",
    "ByDate",
    "SingleOpen",
]
