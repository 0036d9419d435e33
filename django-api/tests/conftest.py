"""Pytest configuration and shared fixtures."""

import pytest
from rest_framework.test import APIClient

from placements.services import PlacementService
from placements.stores import InMemoryPlacementStore
from tests.factories import FakeClock, RecordingPublisher, make_drive, make_student


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def store() -> InMemoryPlacementStore:
    return InMemoryPlacementStore()


@pytest.fixture
def service(store, clock, publisher) -> PlacementService:
    return PlacementService(store=store, clock=clock, publisher=publisher)


@pytest.fixture
def student(store):
    snapshot = make_student()
    store.add_student(snapshot)
    return snapshot


@pytest.fixture
def drive(store):
    active = make_drive()
    store.save_drive(active, expected_prior_status=None)
    return active
