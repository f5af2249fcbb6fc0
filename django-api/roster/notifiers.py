"""Push side of the chat transport.

The roster only needs to push reminders into a conversation. Concrete
transports subclass Notifier and are selected by dotted path in
``ROSTER["NOTIFIER"]``.
"""

import logging
from abc import ABC, abstractmethod

from django.utils import timezone
from django.utils.module_loading import import_string

from roster.conf import roster_setting
from roster.domain import Event

logger = logging.getLogger("roster.notifiers")


class NotificationError(Exception):
    """The transport could not deliver a message. Safe to retry later."""


class Notifier(ABC):
    @abstractmethod
    def send_reminder(self, event: Event) -> None:
        """Push a reminder for ``event`` into its conversation.

        Raises:
            NotificationError: The transport is unavailable.
        """
        ...


class LoggingNotifier(Notifier):
    """Writes reminders to the log instead of a chat."""

    def send_reminder(self, event: Event) -> None:
        logger.info("Reminder for scope %s: %s", event.scope, render_reminder(event))


def render_reminder(event: Event) -> str:
    start = timezone.localtime(event.window.start)
    names = ", ".join(f"{r.display_name} (+{r.quantity})" for r in event.participants)
    lines = [
        f"Reminder: {event.title or 'activity'} starts {start:%m/%d %H:%M}",
        f"{event.participant_total}/{event.capacity.value} confirmed",
    ]
    if event.location:
        lines.insert(1, event.location)
    if names:
        lines.append(names)
    return "\n".join(lines)


def get_notifier() -> Notifier:
    return import_string(roster_setting("NOTIFIER"))()
