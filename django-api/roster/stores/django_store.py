"""Django ORM implementation of the stores.

Writes lock the event row (``select_for_update``) and additionally guard
the update with a compare-and-swap on ``version``, so backends that ignore
row locks still never lose an update.
"""

import logging
from dataclasses import replace

from django.db import transaction

from roster import models as orm
from roster.domain import (
    Capacity,
    CoreMember,
    Event,
    EventId,
    Registration,
    Seasonal,
    Standard,
    TimeWindow,
)
from roster.domain.errors import ConflictError, EventNotFoundError
from roster.stores.interfaces import EventStore, MembershipRegistry, Mutation, T

logger = logging.getLogger("roster.stores")

READ_ATTEMPTS = 3


class DjangoEventStore(EventStore):
    """Database-backed event store using Django ORM."""

    def list_events(self, scope: str | None = None) -> list[Event]:
        queryset = orm.Event.objects.all()
        if scope is not None:
            queryset = queryset.filter(scope=scope)
        return self._consistent_read(queryset, label=scope or "all")

    def get_event(self, event_id: EventId) -> Event | None:
        events = self._consistent_read(
            orm.Event.objects.filter(pk=event_id.value), label=str(event_id)
        )
        return events[0] if events else None

    def add_event(self, event: Event) -> Event:
        with transaction.atomic():
            row = orm.Event.objects.create(
                id=event.id.value, version=event.version, **_event_fields(event)
            )
            orm.Registration.objects.bulk_create(_registration_rows(row.pk, event))
        return event

    def delete_event(self, event_id: EventId) -> bool:
        deleted, _ = orm.Event.objects.filter(pk=event_id.value).delete()
        return deleted > 0

    def mutate(self, event_id: EventId, fn: Mutation[T]) -> tuple[Event, T]:
        with transaction.atomic():
            try:
                row = (
                    orm.Event.objects.select_for_update()
                    .prefetch_related("registrations")
                    .get(pk=event_id.value)
                )
            except orm.Event.DoesNotExist:
                raise EventNotFoundError(str(event_id)) from None

            current = _to_domain(row)
            updated, outcome = fn(current)
            new_version = row.version + 1

            swapped = orm.Event.objects.filter(pk=row.pk, version=row.version).update(
                version=new_version, **_event_fields(updated)
            )
            if not swapped:
                logger.warning("Version conflict on event %s at %d", event_id, row.version)
                raise ConflictError(str(event_id))

            orm.Registration.objects.filter(event_id=row.pk).delete()
            orm.Registration.objects.bulk_create(_registration_rows(row.pk, updated))

        return replace(updated, version=new_version), outcome

    def _consistent_read(self, queryset, label: str) -> list[Event]:
        """Load events with registrations, retrying if a write interleaved.

        Rows and registrations come from separate queries; re-checking the
        version column afterwards rules out a torn snapshot.
        """
        for _ in range(READ_ATTEMPTS):
            rows = list(queryset.prefetch_related("registrations"))
            versions = dict(
                orm.Event.objects.filter(pk__in=[r.pk for r in rows]).values_list(
                    "pk", "version"
                )
            )
            if all(versions.get(r.pk, r.version) == r.version for r in rows):
                return [_to_domain(r) for r in rows]
        logger.warning("Torn read on %s after %d attempts", label, READ_ATTEMPTS)
        raise ConflictError(label)


class DjangoMembershipRegistry(MembershipRegistry):
    """Core membership persisted in the CoreMember table."""

    def add(self, subject: str, display_name: str = "") -> CoreMember:
        row, _ = orm.CoreMember.objects.update_or_create(
            subject=subject, defaults={"display_name": display_name}
        )
        return CoreMember(subject=row.subject, display_name=row.display_name)

    def remove(self, subject: str) -> bool:
        deleted, _ = orm.CoreMember.objects.filter(subject=subject).delete()
        return deleted > 0

    def is_member(self, subject: str) -> bool:
        return orm.CoreMember.objects.filter(subject=subject).exists()

    def list(self) -> list[CoreMember]:
        return [
            CoreMember(subject=row.subject, display_name=row.display_name)
            for row in orm.CoreMember.objects.all()
        ]


def _event_fields(event: Event) -> dict:
    seasonal = isinstance(event.kind, Seasonal)
    return {
        "scope": event.scope,
        "kind": orm.Event.Kind.SEASONAL if seasonal else orm.Event.Kind.STANDARD,
        "title": event.title,
        "location": event.location,
        "starts_at": event.window.start,
        "ends_at": event.window.end,
        "priority_cutoff": event.kind.priority_cutoff if seasonal else None,
        "capacity": event.capacity.value,
        "waitlist_capacity": (
            event.waitlist_capacity.value if event.waitlist_capacity else None
        ),
        "signup_cutoff": event.signup_cutoff,
        "reminder_sent_at": event.reminder_sent_at,
        "created_at": event.created_at,
    }


def _registration_rows(event_pk, event: Event) -> list[orm.Registration]:
    rows = []
    for container, entries in (
        (orm.Registration.Container.MAIN, event.participants),
        (orm.Registration.Container.WAIT, event.waitlist),
    ):
        for position, entry in enumerate(entries):
            rows.append(
                orm.Registration(
                    event_id=event_pk,
                    container=container,
                    position=position,
                    subject=entry.subject,
                    display_name=entry.display_name,
                    quantity=entry.quantity,
                    priority=entry.priority,
                )
            )
    return rows


def _to_domain(row: orm.Event) -> Event:
    registrations = sorted(row.registrations.all(), key=lambda r: r.position)

    def entries(container: str) -> tuple[Registration, ...]:
        return tuple(
            Registration(
                subject=r.subject,
                display_name=r.display_name,
                quantity=r.quantity,
                priority=r.priority,
            )
            for r in registrations
            if r.container == container
        )

    if row.kind == orm.Event.Kind.SEASONAL:
        kind = Seasonal(priority_cutoff=row.priority_cutoff)
    else:
        kind = Standard()

    return Event(
        id=EventId(value=row.pk),
        scope=row.scope,
        kind=kind,
        window=TimeWindow(start=row.starts_at, end=row.ends_at),
        capacity=Capacity(row.capacity),
        created_at=row.created_at,
        title=row.title,
        location=row.location,
        waitlist_capacity=(
            Capacity(row.waitlist_capacity) if row.waitlist_capacity else None
        ),
        signup_cutoff=row.signup_cutoff,
        participants=entries(orm.Registration.Container.MAIN),
        waitlist=entries(orm.Registration.Container.WAIT),
        reminder_sent_at=row.reminder_sent_at,
        version=row.version,
    )
