"""
Test fixtures for the Honours Class Tracker.

Provides db, storage, identity and service fixtures backed by a file-based
SQLite database in tmp_path, plus a deterministic clock.
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from honours_tracker.db import connect, create_schema  # noqa: E402
from honours_tracker.identity import IdentityService  # noqa: E402
from honours_tracker.models import ProgramType, SubjectType  # noqa: E402
from honours_tracker.services import TrackerService  # noqa: E402
from honours_tracker.storage import KeyValueStorage  # noqa: E402


class TickingClock:
    """Returns a fixed start time and advances by `step` on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start or datetime(2024, 3, 5, 9, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        value = self.now
        self.now += self.step
        return value


def login(identity: IdentityService, name: str = "Ann Lee", password: str = "pw1") -> None:
    assert identity.login(name, password, ProgramType.BA_HONORS, SubjectType.BANGLA)


@pytest.fixture
def db(tmp_path):
    """File-based SQLite database with the kv_store schema."""
    database = connect(tmp_path / "tracker.db")
    create_schema(database)
    yield database
    database.close()


@pytest.fixture
def storage(db):
    return KeyValueStorage(db)


@pytest.fixture
def identity(storage):
    return IdentityService(storage)


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def service(storage, identity, clock):
    """Service without a logged-in user."""
    return TrackerService(storage, identity, clock=clock)


@pytest.fixture
def ann(service, identity):
    """Service with 'Ann Lee' (BA Honours, Bangla) logged in."""
    login(identity)
    return service
