"""Shared fixtures for service and API tests.

Service tests run against the in-memory fakes in tests/fakes.py with a
MagicMock session. Audit emission is captured, never written.
"""
from unittest.mock import MagicMock

import pytest

from app.core.limiter import limiter
from app.services import approval_store, audit, directory
from fakes import FakeDirectory, FakeStore


@pytest.fixture(autouse=True)
def no_rate_limit():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def fake_store(monkeypatch) -> FakeStore:
    store = FakeStore()
    for name in (
        "load_parent", "load_parents", "get_approval", "list_approvals",
        "save_approval", "add_approval", "list_pending_for_approver",
    ):
        monkeypatch.setattr(approval_store, name, getattr(store, name))
    return store


@pytest.fixture
def fake_directory(monkeypatch) -> FakeDirectory:
    fake = FakeDirectory()
    for name in ("get_user", "is_active", "has_permission"):
        monkeypatch.setattr(directory, name, getattr(fake, name))
    return fake


@pytest.fixture
def audit_events(monkeypatch) -> list:
    events: list = []
    monkeypatch.setattr(audit, "record", events.append)
    return events


@pytest.fixture
def db() -> MagicMock:
    return MagicMock()
