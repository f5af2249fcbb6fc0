from roster.stores.interfaces import EventStore, MembershipRegistry
from roster.stores.memory_store import InMemoryEventStore, InMemoryMembershipRegistry

__all__ = [
    "EventStore",
    "MembershipRegistry",
    "InMemoryEventStore",
    "InMemoryMembershipRegistry",
]
