"""
Shared pytest fixtures and event helpers.
"""

from datetime import datetime, timedelta
from typing import Optional

import pytest
import pytz

from agenda_sync.models.credential import CredentialRecord
from agenda_sync.models.event import RemoteEvent, RemoteStatus
from agenda_sync.storage.credential_store import CredentialStore
from agenda_sync.storage.database import LocalStore
from agenda_sync.storage.event_store import EventStore
from tests.fake_remote import FakeRemoteCalendarClient

USER_ID = "user-1"
CALENDAR_ID = "primary"
NOW = datetime(2025, 1, 20, 12, 0, 0, tzinfo=pytz.utc)


class FixedClock:
    """Callable clock returning a controllable UTC instant."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> datetime:
        self.now = self.now + delta
        return self.now


def make_remote(
    remote_id: str,
    summary: str = "Remote Event",
    start: Optional[datetime] = datetime(2025, 1, 15, 9, 0),
    end: Optional[datetime] = datetime(2025, 1, 15, 10, 0),
    updated: datetime = NOW - timedelta(days=1),
    status: RemoteStatus = RemoteStatus.CONFIRMED,
    description: str = "",
) -> RemoteEvent:
    """Return a RemoteEvent already translated to naive reference time."""
    return RemoteEvent(
        id=remote_id,
        summary=summary,
        description=description,
        start=start,
        end=end,
        updated=updated,
        status=status,
    )


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(tmp_path):
    with LocalStore(tmp_path / "test_agenda.db") as local_store:
        yield local_store


@pytest.fixture
def credential_store(store):
    return CredentialStore(store)


@pytest.fixture
def event_store(store):
    return EventStore(store)


@pytest.fixture
def credential(credential_store):
    record = CredentialRecord(
        user_id=USER_ID,
        access_token="access-old",
        refresh_token="refresh-1",
        token_expires_at=NOW + timedelta(hours=1),
        remote_calendar_id=CALENDAR_ID,
        sync_enabled=True,
        remote_account_email="someone@example.com",
    )
    return credential_store.save(record)


@pytest.fixture
def remote(clock):
    return FakeRemoteCalendarClient(clock)


@pytest.fixture
def add_local(event_store):
    """Factory creating local events as the UI would."""

    def _add(
        title: str = "Local Event",
        start: datetime = datetime(2025, 1, 15, 9, 0),
        end: datetime = datetime(2025, 1, 15, 10, 0),
        updated_at: datetime = NOW - timedelta(hours=1),
        remote_id: Optional[str] = None,
        user_id: str = USER_ID,
    ):
        event = event_store.create(user_id, title, start, end, updated_at=updated_at)
        if remote_id is not None:
            # Linked before this change was made locally
            event_store.link_remote(event.id, remote_id, synced_at=updated_at - timedelta(hours=1))
        return event_store.get(event.id)

    return _add
