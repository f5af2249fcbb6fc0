"""Tests for the reminder tick."""

import threading
from dataclasses import replace
from datetime import timedelta

import pytest
from django.core.management import call_command
from django.db.models import F
from django.utils import timezone

from factories import NOW, make_event
from roster import models as orm
from roster.domain import Event, TimeWindow
from roster.domain.errors import ConflictError
from roster.notifiers import LoggingNotifier, NotificationError, Notifier, render_reminder
from roster.services import ReminderService
from roster.services.reminder_service import is_reminder_due
from roster.signals import roster_changed
from roster.stores import InMemoryEventStore
from roster.stores.django_store import DjangoEventStore

LEAD = timedelta(hours=2)


class RecordingNotifier(Notifier):
    def __init__(self, failures: int = 0) -> None:
        self.sent: list[Event] = []
        self.failures = failures

    def send_reminder(self, event: Event) -> None:
        if self.failures:
            self.failures -= 1
            raise NotificationError("transport unavailable")
        self.sent.append(event)


class ConflictOnceStore(InMemoryEventStore):
    """Fails the first mutation as if another writer bumped the version."""

    def __init__(self, events=()):
        super().__init__(events)
        self.conflicted = False

    def mutate(self, event_id, fn):
        if not self.conflicted:
            self.conflicted = True
            raise ConflictError(str(event_id))
        return super().mutate(event_id, fn)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def scheduler(store, notifier, clock) -> ReminderService:
    return ReminderService(store=store, notifier=notifier, clock=clock, lead=LEAD)


class TestIsReminderDue:
    def test_due_inside_lead(self):
        assert is_reminder_due(make_event(starts_in=timedelta(hours=1)), NOW, LEAD)
        assert is_reminder_due(make_event(starts_in=LEAD), NOW, LEAD)

    def test_not_due_outside_lead(self):
        assert not is_reminder_due(make_event(starts_in=timedelta(hours=3)), NOW, LEAD)

    def test_not_due_once_started(self):
        assert not is_reminder_due(make_event(starts_in=timedelta(0)), NOW, LEAD)
        assert not is_reminder_due(make_event(starts_in=timedelta(minutes=-30)), NOW, LEAD)

    def test_not_due_when_already_sent(self):
        event = make_event(starts_in=timedelta(hours=1), reminder_sent_at=NOW)
        assert not is_reminder_due(event, NOW, LEAD)


class TestTick:
    def test_dispatches_once_and_marks(self, clock, notifier):
        event = make_event(starts_in=timedelta(hours=1))
        store = InMemoryEventStore((event,))
        service = scheduler(store, notifier, clock)

        assert service.tick(NOW) == [event.id]
        assert service.tick(NOW) == []
        assert len(notifier.sent) == 1
        assert store.get_event(event.id).reminder_sent_at == NOW

    def test_concurrent_ticks_dispatch_once(self, clock, notifier):
        event = make_event(starts_in=timedelta(hours=1))
        store = InMemoryEventStore((event,))
        service = scheduler(store, notifier, clock)

        threads = [threading.Thread(target=service.tick, args=(NOW,)) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(notifier.sent) == 1

    def test_uses_clock_when_now_omitted(self, clock, notifier):
        event = make_event(starts_in=timedelta(hours=3))
        store = InMemoryEventStore((event,))
        service = scheduler(store, notifier, clock)

        assert service.tick() == []
        clock.advance(timedelta(hours=1, minutes=30))
        assert service.tick() == [event.id]

    def test_failed_dispatch_is_retried(self, clock):
        event = make_event(starts_in=timedelta(hours=1))
        store = InMemoryEventStore((event,))
        notifier = RecordingNotifier(failures=1)
        service = scheduler(store, notifier, clock)

        assert service.tick(NOW) == []
        assert not store.get_event(event.id).reminder_sent
        assert service.tick(NOW + timedelta(minutes=1)) == [event.id]
        assert len(notifier.sent) == 1

    def test_failure_does_not_block_other_events(self, clock):
        first = make_event(starts_in=timedelta(minutes=30))
        second = make_event(starts_in=timedelta(minutes=60))
        store = InMemoryEventStore((first, second))
        notifier = RecordingNotifier(failures=1)

        assert scheduler(store, notifier, clock).tick(NOW) == [second.id]
        assert not store.get_event(first.id).reminder_sent

    def test_skips_expired_and_far_events(self, clock, notifier):
        store = InMemoryEventStore(
            (
                make_event(starts_in=timedelta(hours=-5)),
                make_event(starts_in=timedelta(days=2)),
            )
        )
        assert scheduler(store, notifier, clock).tick(NOW) == []
        assert notifier.sent == []

    def test_lead_defaults_to_setting(self, settings, clock, notifier):
        settings.ROSTER = {"REMINDER_LEAD": timedelta(minutes=10)}
        store = InMemoryEventStore((make_event(starts_in=timedelta(minutes=30)),))
        service = ReminderService(store=store, notifier=notifier, clock=clock)
        assert service.tick(NOW) == []

    def test_conflicting_claim_sends_nothing(self, clock, notifier):
        event = make_event(starts_in=timedelta(hours=1))
        store = ConflictOnceStore((event,))
        service = scheduler(store, notifier, clock)

        assert service.tick(NOW) == []
        assert notifier.sent == []
        assert service.tick(NOW) == [event.id]
        assert service.tick(NOW) == []
        assert len(notifier.sent) == 1

    def test_event_is_marked_before_send(self, clock):
        event = make_event(starts_in=timedelta(hours=1))
        store = InMemoryEventStore((event,))
        seen = []

        class InspectingNotifier(Notifier):
            def send_reminder(self, event):
                seen.append(store.get_event(event.id).reminder_sent_at)

        scheduler(store, InspectingNotifier(), clock).tick(NOW)
        assert seen == [NOW]

    def test_sends_roster_changed(self, clock, notifier):
        event = make_event(starts_in=timedelta(hours=1))
        store = InMemoryEventStore((event,))
        received = []

        def listener(sender, **kwargs):
            received.append((kwargs["event_id"], kwargs["operation"]))

        roster_changed.connect(listener)
        try:
            scheduler(store, notifier, clock).tick(NOW)
        finally:
            roster_changed.disconnect(listener)
        assert received == [(str(event.id), "remind")]

    def test_failed_send_releases_claim_and_signals(self, clock):
        event = make_event(starts_in=timedelta(hours=1))
        store = InMemoryEventStore((event,))
        operations = []

        def listener(sender, **kwargs):
            operations.append(kwargs["operation"])

        roster_changed.connect(listener)
        try:
            scheduler(store, RecordingNotifier(failures=1), clock).tick(NOW)
        finally:
            roster_changed.disconnect(listener)
        assert operations == ["remind", "remind"]
        assert store.get_event(event.id).reminder_sent_at is None


class TestNotifiers:
    def test_render_reminder(self):
        event = make_event(
            capacity=4, title="Badminton", location="Court 10", participants=[("amy", 2)]
        )
        text = render_reminder(event)
        assert "Badminton" in text
        assert "Court 10" in text
        assert "2/4 confirmed" in text
        assert "amy (+2)" in text

    def test_logging_notifier(self, caplog):
        with caplog.at_level("INFO", logger="roster.notifiers"):
            LoggingNotifier().send_reminder(make_event(title="Badminton"))
        assert "Badminton" in caplog.text


@pytest.mark.django_db
class TestSendRemindersCommand:
    def test_command_marks_due_events(self, settings):
        settings.ROSTER = {"NOTIFIER": "roster.notifiers.LoggingNotifier"}
        start = timezone.now() + timedelta(minutes=30)
        soon = replace(
            make_event(), window=TimeWindow(start=start, end=start + timedelta(hours=2))
        )
        DjangoEventStore().add_event(soon)

        call_command("send_reminders", "--lead-minutes", "60")

        assert orm.Event.objects.get(pk=soon.id.value).reminder_sent_at is not None


@pytest.mark.django_db
class TestDjangoBackedTick:
    def test_version_bump_during_send_does_not_resend(self, clock):
        store = DjangoEventStore()
        event = store.add_event(make_event(starts_in=timedelta(hours=1)))
        dispatches = []

        class InterleavingNotifier(Notifier):
            def send_reminder(self, event):
                dispatches.append(event.id)
                orm.Event.objects.filter(pk=event.id.value).update(version=F("version") + 1)

        service = ReminderService(
            store=store, notifier=InterleavingNotifier(), clock=clock, lead=LEAD
        )
        assert service.tick(NOW) == [event.id]
        assert service.tick(NOW) == []
        assert len(dispatches) == 1
        assert store.get_event(event.id).reminder_sent_at == NOW
