"""Django signals for cache invalidation and the audit side channel.

``roster_changed`` is sent by EventService after every successful write.
The ORM receiver covers edits made outside the service, such as the admin,
where registration inlines are always saved together with their event.
"""

import logging

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal, receiver

from roster.models import Event

audit_logger = logging.getLogger("roster.audit")

# Sent with event_id, scope and operation keyword arguments.
roster_changed = Signal()


def event_cache_key(event_id: str) -> str:
    return f"roster:event:{event_id}"


def scope_cache_key(scope: str) -> str:
    return f"roster:scope:{scope}:events"


def invalidate(event_id: str, scope: str) -> None:
    cache.delete_many([event_cache_key(event_id), scope_cache_key(scope)])


@receiver(roster_changed)
def invalidate_on_change(sender, event_id, scope, **kwargs):
    """Drop cached snapshots of the changed event and its scope listing."""
    invalidate(event_id, scope)


@receiver(roster_changed)
def write_audit_line(sender, event_id, scope, operation, **kwargs):
    audit_logger.info("%s event=%s scope=%s", operation, event_id, scope)


@receiver([post_save, post_delete], sender=Event)
def invalidate_event_cache(sender, instance, **kwargs):
    """Invalidate caches when an event is saved or deleted."""
    invalidate(str(instance.pk), instance.scope)

