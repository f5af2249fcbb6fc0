"""Builds services backed by the Django stores.

Views and management commands call these instead of constructing stores
themselves, so tests can swap in other implementations in one place.
"""

from roster.clock import SystemClock
from roster.notifiers import get_notifier
from roster.services import EventService, ReminderService
from roster.stores.django_store import DjangoEventStore, DjangoMembershipRegistry


def get_event_service() -> EventService:
    return EventService(
        store=DjangoEventStore(),
        registry=DjangoMembershipRegistry(),
        clock=SystemClock(),
    )


def get_reminder_service(lead=None) -> ReminderService:
    return ReminderService(
        store=DjangoEventStore(),
        notifier=get_notifier(),
        clock=SystemClock(),
        lead=lead,
    )
