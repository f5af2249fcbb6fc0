"""Pytest configuration and shared fixtures."""

from datetime import datetime

import pytest
from rest_framework.test import APIClient

from factories import NOW
from roster.clock import FixedClock
from roster.services import EventService
from roster.stores import InMemoryEventStore, InMemoryMembershipRegistry


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def registry() -> InMemoryMembershipRegistry:
    return InMemoryMembershipRegistry()


@pytest.fixture
def service(store, registry, clock) -> EventService:
    return EventService(store=store, registry=registry, clock=clock)
