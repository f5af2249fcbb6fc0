"""Reminder dispatch driven by periodic ticks.

Something outside the app (cron, a worker loop) calls ``tick``. Each event
gets at most one reminder. A tick first claims the event by setting
``reminder_sent_at`` through the store's atomic mutate, and only sends once
that write has committed. A failed send releases the claim so the next tick
tries again.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta

from roster.clock import Clock, SystemClock
from roster.conf import roster_setting
from roster.domain import Event, EventId
from roster.domain.errors import DomainError
from roster.domain.lifecycle import is_open
from roster.notifiers import NotificationError, Notifier
from roster.signals import roster_changed
from roster.stores.interfaces import EventStore

logger = logging.getLogger("roster.reminders")

REMIND = "remind"


def is_reminder_due(event: Event, now: datetime, lead: timedelta) -> bool:
    if event.reminder_sent or not is_open(event, now):
        return False
    until_start = event.window.start - now
    return timedelta(0) < until_start <= lead


class ReminderService:
    def __init__(
        self,
        store: EventStore,
        notifier: Notifier,
        clock: Clock | None = None,
        lead: timedelta | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock or SystemClock()
        self._lead = lead if lead is not None else roster_setting("REMINDER_LEAD")

    def tick(self, now: datetime | None = None) -> list[EventId]:
        """Send due reminders and return the IDs of events reminded."""
        now = now or self._clock.now()
        sent = []
        for event in self._store.list_events():
            if not is_reminder_due(event, now, self._lead):
                continue
            try:
                claimed, won = self._store.mutate(
                    event.id, lambda current: self._claim(current, now)
                )
            except DomainError as exc:
                logger.warning("Reminder for event %s skipped: %s", event.id, exc)
                continue
            if not won:
                continue
            self._changed(claimed)

            try:
                self._notifier.send_reminder(claimed)
            except NotificationError as exc:
                logger.warning("Reminder for event %s not delivered: %s", event.id, exc)
                self._release(event.id, now)
                continue
            sent.append(event.id)
        if sent:
            logger.info("Sent %d reminder(s)", len(sent))
        return sent

    def _claim(self, event: Event, now: datetime) -> tuple[Event, bool]:
        # Re-check under the lock; another tick may have won the race.
        if not is_reminder_due(event, now, self._lead):
            return event, False
        return replace(event, reminder_sent_at=now), True

    def _release(self, event_id: EventId, now: datetime) -> None:
        """Clear this tick's claim so the reminder is retried."""

        def unmark(current: Event) -> tuple[Event, bool]:
            if current.reminder_sent_at != now:
                return current, False
            return replace(current, reminder_sent_at=None), True

        try:
            released, cleared = self._store.mutate(event_id, unmark)
        except DomainError as exc:
            logger.error("Could not release reminder claim on event %s: %s", event_id, exc)
            return
        if cleared:
            self._changed(released)

    def _changed(self, event: Event) -> None:
        roster_changed.send(
            sender=self.__class__,
            event_id=str(event.id),
            scope=event.scope,
            operation=REMIND,
        )
