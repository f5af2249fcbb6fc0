"""Tests for the in-memory stores and membership seeding."""

import threading
from dataclasses import replace
from datetime import timedelta

import pytest

from factories import NOW, composition, make_event
from roster.domain import CoreMember
from roster.domain.allocation import admit, withdraw
from roster.domain.errors import EventNotFoundError
from roster.domain.membership import seed
from roster.stores import InMemoryEventStore, InMemoryMembershipRegistry


class TestInMemoryEventStore:
    def test_add_and_get(self):
        store = InMemoryEventStore()
        event = make_event()
        store.add_event(event)
        assert store.get_event(event.id) == event

    def test_list_filters_scope_and_orders_by_start(self):
        late = make_event(starts_in=timedelta(days=3))
        early = make_event(starts_in=timedelta(days=1))
        other = make_event(scope="group-2")
        store = InMemoryEventStore((late, early, other))
        assert store.list_events("group-1") == [early, late]
        assert len(store.list_events()) == 3

    def test_mutate_persists_and_bumps_version(self):
        event = make_event()
        store = InMemoryEventStore((event,))
        stored, outcome = store.mutate(event.id, lambda e: (replace(e, title="Badminton"), "ok"))
        assert outcome == "ok"
        assert stored.version == 1
        assert store.get_event(event.id).title == "Badminton"

    def test_mutate_missing_event(self):
        store = InMemoryEventStore()
        with pytest.raises(EventNotFoundError):
            store.mutate(make_event().id, lambda e: (e, None))

    def test_failed_mutation_persists_nothing(self):
        event = make_event(participants=[("X", 1)])
        store = InMemoryEventStore((event,))

        def explode(current):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            store.mutate(event.id, explode)
        assert store.get_event(event.id) == event

    def test_delete(self):
        event = make_event()
        store = InMemoryEventStore((event,))
        assert store.delete_event(event.id)
        assert not store.delete_event(event.id)
        assert store.get_event(event.id) is None

    def test_locks_are_released_with_their_events(self):
        store = InMemoryEventStore()
        for _ in range(100):
            event = store.add_event(make_event())
            store.delete_event(event.id)
        missing = make_event().id
        with pytest.raises(EventNotFoundError):
            store.mutate(missing, lambda e: (e, None))
        assert not store.delete_event(missing)
        assert store._locks == {}

    def test_mutate_after_concurrent_delete(self):
        event = make_event()
        store = InMemoryEventStore((event,))
        entered = threading.Event()
        release = threading.Event()
        errors = []

        def slow_mutation(current):
            entered.set()
            release.wait(timeout=5)
            return current, None

        def delete_then_mutate():
            entered.wait(timeout=5)
            store.delete_event(event.id)
            try:
                store.mutate(event.id, lambda e: (e, None))
            except EventNotFoundError as exc:
                errors.append(exc)

        writer = threading.Thread(target=store.mutate, args=(event.id, slow_mutation))
        deleter = threading.Thread(target=delete_then_mutate)
        writer.start()
        deleter.start()
        entered.wait(timeout=5)
        release.set()
        writer.join()
        deleter.join()

        assert len(errors) == 1
        assert store.get_event(event.id) is None
        assert store._locks == {}

    def test_concurrent_mutations_do_not_lose_updates(self):
        registry = InMemoryMembershipRegistry()
        event = make_event(capacity=50)
        store = InMemoryEventStore((event,))
        subjects = [f"u{i}" for i in range(40)]

        def join(subject):
            store.mutate(event.id, lambda e: admit(e, subject, subject, 1, NOW, registry))

        threads = [threading.Thread(target=join, args=(s,)) for s in subjects]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        final = store.get_event(event.id)
        assert final.participant_total == 40
        assert final.version == 40
        assert sorted(r.subject for r in final.participants) == sorted(subjects)

    def test_racing_withdrawals_keep_capacity(self):
        event = make_event(
            capacity=3,
            participants=[("a", 1), ("b", 1), ("c", 1)],
            waitlist=[("w1", 2), ("w2", 2)],
        )
        store = InMemoryEventStore((event,))

        def leave(subject):
            store.mutate(event.id, lambda e: withdraw(e, subject, 1, NOW))

        threads = [threading.Thread(target=leave, args=(s,)) for s in ("a", "b", "c")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        final = store.get_event(event.id)
        assert composition(final) == ([("w1", 2), ("w2", 1)], [("w2", 1)])


class TestInMemoryMembershipRegistry:
    def test_add_remove_and_order(self):
        registry = InMemoryMembershipRegistry()
        registry.add("b", "Bee")
        registry.add("a", "Ay")
        assert [m.subject for m in registry.list()] == ["b", "a"]
        assert registry.is_member("a")
        assert registry.remove("a")
        assert not registry.remove("a")
        assert not registry.is_member("a")

    def test_readd_keeps_position(self):
        registry = InMemoryMembershipRegistry()
        registry.add("b")
        registry.add("a")
        registry.add("b", "Renamed")
        assert registry.list() == [CoreMember("b", "Renamed"), CoreMember("a", "")]


class TestSeed:
    def members(self, *subjects):
        return [CoreMember(subject=s, display_name=s.upper()) for s in subjects]

    def test_fills_main_then_waitlist(self):
        event = seed(make_event(capacity=2, waitlist_capacity=1), self.members("a", "b", "c", "d"))
        assert composition(event) == ([("a", 1), ("b", 1)], [("c", 1)])
        assert all(r.priority for r in event.participants + event.waitlist)
        assert event.participants[0].display_name == "A"

    def test_unbounded_waitlist_takes_everyone(self):
        event = seed(make_event(capacity=1), self.members("a", "b", "c"))
        assert composition(event) == ([("a", 1)], [("b", 1), ("c", 1)])

    def test_falls_back_to_subject_for_display_name(self):
        event = seed(make_event(capacity=1), [CoreMember(subject="x")])
        assert event.participants[0].display_name == "x"

    def test_skips_members_already_seated(self):
        event = make_event(capacity=3, participants=[("a", 1)])
        event = seed(event, self.members("a", "b"))
        assert composition(event) == ([("a", 1), ("b", 1)], [])
