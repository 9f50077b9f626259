"""Shared fixtures: a fresh in-memory store wired into the app per test."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from moody.blog.client import BlogClient
from moody.blog.main import app
from moody.blog.storage import MemStorage, get_storage


class StepClock:
    """Deterministic clock. Each call advances by `step` (zero freezes it)."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def storage() -> MemStorage:
    return MemStorage(clock=StepClock())


@pytest.fixture
def client(storage: MemStorage):
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def api(client: TestClient) -> BlogClient:
    return BlogClient(http=client)
