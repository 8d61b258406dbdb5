"""
Unit tests for the sync orchestrator.
"""

from datetime import datetime, timedelta

import pytest

from agenda_sync.auth.token_manager import TokenLifecycleManager
from agenda_sync.storage.locks import SyncLock
from agenda_sync.sync.engine import SyncOrchestrator
from agenda_sync.utils.exceptions import (
    AuthExpiredError,
    NotConnectedError,
    SyncDisabledError,
    SyncInProgressError,
)
from tests.conftest import NOW, USER_ID, make_remote
from tests.fake_oauth import FakeOAuthProvider


@pytest.fixture
def provider(clock):
    return FakeOAuthProvider(clock)


@pytest.fixture
def tokens_seen():
    return []


@pytest.fixture
def orchestrator(store, credential_store, provider, remote, clock, tokens_seen):
    def client_factory(access_token):
        tokens_seen.append(access_token)
        return remote

    token_manager = TokenLifecycleManager(provider, credential_store, clock=clock)
    return SyncOrchestrator(store, token_manager, client_factory, lookback_days=30, clock=clock)


def test_not_connected(orchestrator):
    with pytest.raises(NotConnectedError):
        orchestrator.run_sync(USER_ID)


def test_disabled(orchestrator, credential_store, credential, remote):
    credential_store.set_sync_enabled(USER_ID, False)

    with pytest.raises(SyncDisabledError):
        orchestrator.run_sync(USER_ID)
    assert credential_store.get(USER_ID).last_sync_at is None


def test_full_pass_imports_then_exports(orchestrator, remote, event_store, add_local, credential):
    remote.put(make_remote("r1", summary="From Google"))
    add_local(title="From app")

    result = orchestrator.run_sync(USER_ID)

    assert result.success is True
    assert result.imported == 1
    assert result.exported == 1
    assert result.errors == []
    titles = {e.title: e.remote_id for e in event_store.list_for_user(USER_ID)}
    assert titles["From Google"] == "r1"
    assert titles["From app"] == "remote-1"


def test_imported_events_are_not_echoed_back(orchestrator, remote, credential):
    remote.put(make_remote("r1", summary="From Google"))

    result = orchestrator.run_sync(USER_ID)

    assert result.exported == 0
    assert remote.updates == []
    assert remote.creates == []


def test_first_sync_looks_back_thirty_days(orchestrator, remote, credential):
    remote.put(make_remote("recent", updated=NOW - timedelta(days=29)))
    remote.put(make_remote("old", updated=NOW - timedelta(days=31)))

    result = orchestrator.run_sync(USER_ID)

    assert result.imported == 1


def test_watermark_advances_and_limits_next_pass(
    orchestrator, remote, credential_store, credential, clock
):
    remote.put(make_remote("r1", updated=NOW - timedelta(days=1)))
    orchestrator.run_sync(USER_ID)
    assert credential_store.get(USER_ID).last_sync_at == NOW

    clock.advance(timedelta(hours=1))
    second = orchestrator.run_sync(USER_ID)

    assert second.imported == 0
    assert second.conflicts == 0
    assert credential_store.get(USER_ID).last_sync_at == NOW + timedelta(hours=1)


def test_watermark_advances_despite_item_errors(
    orchestrator, remote, credential_store, credential, add_local
):
    add_local(title="Broken")
    remote.failing_titles.add("Broken")

    result = orchestrator.run_sync(USER_ID)

    assert result.success is False
    assert result.errors and "Broken" in result.errors[0]
    assert credential_store.get(USER_ID).last_sync_at == NOW


def test_expiring_token_is_refreshed_before_remote_calls(
    orchestrator, provider, credential_store, credential, tokens_seen
):
    credential_store.update_tokens(USER_ID, "access-old", NOW + timedelta(minutes=2))

    orchestrator.run_sync(USER_ID)

    assert provider.refresh_calls == ["refresh-1"]
    assert tokens_seen == ["access-2"]
    assert credential_store.get(USER_ID).access_token == "access-2"


def test_rejected_refresh_aborts_before_mutation(
    orchestrator, provider, remote, credential_store, credential, event_store, add_local, tokens_seen
):
    credential_store.update_tokens(USER_ID, "access-old", NOW - timedelta(minutes=1))
    provider.revoked = True
    remote.put(make_remote("r1"))
    local = add_local(title="Pending")

    with pytest.raises(AuthExpiredError):
        orchestrator.run_sync(USER_ID)

    assert tokens_seen == []
    assert event_store.find_by_remote_id(USER_ID, "r1") is None
    assert event_store.get(local.id).remote_id is None
    assert credential_store.get(USER_ID).last_sync_at is None


def test_concurrent_pass_is_rejected(orchestrator, store, credential, clock):
    with SyncLock(store, USER_ID, clock=clock):
        with pytest.raises(SyncInProgressError):
            orchestrator.run_sync(USER_ID)

    # The lock is free again once the holder is done
    assert orchestrator.run_sync(USER_ID).success is True


def test_lock_released_after_failed_pass(orchestrator, credential_store, credential, provider):
    credential_store.update_tokens(USER_ID, "access-old", NOW)
    provider.revoked = True

    with pytest.raises(AuthExpiredError):
        orchestrator.run_sync(USER_ID)

    provider.revoked = False
    assert orchestrator.run_sync(USER_ID).success is True


def test_result_serialises(orchestrator, credential):
    assert orchestrator.run_sync(USER_ID).to_dict() == {
        "success": True,
        "imported": 0,
        "exported": 0,
        "conflicts": 0,
        "errors": [],
    }


def test_event_created_on_both_sides_is_linked_once(
    orchestrator, remote, event_store, add_local, credential
):
    remote.put(
        make_remote(
            "standup-1",
            summary="Standup",
            start=datetime(2025, 1, 15, 9, 0, 30),
            end=datetime(2025, 1, 15, 9, 15),
        )
    )
    local = add_local(
        title="Standup",
        start=datetime(2025, 1, 15, 9, 0, 0),
        end=datetime(2025, 1, 15, 9, 15),
    )

    result = orchestrator.run_sync(USER_ID)

    assert result.success is True
    assert remote.creates == []
    assert remote.event_count == 1
    events = event_store.list_for_user(USER_ID)
    assert [e.id for e in events] == [local.id]
    assert events[0].remote_id == "standup-1"
    # The local copy was edited last, so its version is pushed
    assert remote.updates == ["standup-1"]
    assert result.exported == 1


def test_synced_event_deleted_remotely_is_recreated_after_reconnect(
    orchestrator, remote, event_store, add_local, credential_store, credential
):
    # Linked and unchanged since its last sync, but inside the first-sync window
    local = add_local(title="Review", updated_at=NOW - timedelta(days=3))
    event_store.link_remote(local.id, "abc", synced_at=NOW - timedelta(days=2))

    result = orchestrator.run_sync(USER_ID)

    assert result.exported == 1
    assert remote.gets == ["abc"]
    assert event_store.get(local.id).remote_id == "remote-1"
