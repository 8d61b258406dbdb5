"""
Unit tests for the Google Calendar REST client and OAuth client.

HTTP is stubbed with a mocked requests.Session.
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
import pytz
import requests

from agenda_sync.auth.google_oauth import GoogleOAuthClient
from agenda_sync.config import GoogleConfig
from agenda_sync.models.event import LocalEvent
from agenda_sync.remote.google_client import GoogleCalendarClient
from agenda_sync.utils.exceptions import (
    AuthenticationError,
    AuthExpiredError,
    CalendarReadError,
    CalendarWriteError,
    ConfigurationError,
    NotFoundError,
)
from tests.conftest import NOW, USER_ID


def _response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {}
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Client Error")
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def google_config():
    return GoogleConfig(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://localhost:8000/callback",
    )


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(google_config, session):
    return GoogleCalendarClient("token-123", google_config, "Europe/Paris", session=session)


ITEM = {
    "id": "evt1",
    "summary": "Team meeting",
    "description": "Weekly",
    "start": {"dateTime": "2025-01-15T08:00:00Z"},
    "end": {"dateTime": "2025-01-15T09:00:00Z"},
    "colorId": "11",
    "updated": "2025-01-19T10:30:00.000Z",
    "status": "confirmed",
}


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------


def test_timed_entry_is_translated_to_reference_time(client):
    event = client.to_remote_event(ITEM)

    # 08:00 UTC is 09:00 in Paris in January
    assert event.start == datetime(2025, 1, 15, 9, 0)
    assert event.end == datetime(2025, 1, 15, 10, 0)
    assert event.start.tzinfo is None
    assert event.all_day is False
    assert event.color == "#d50000"
    assert event.updated == datetime(2025, 1, 19, 10, 30, tzinfo=pytz.utc)
    assert event.is_cancelled is False


def test_all_day_entry_maps_to_local_midnight(client):
    event = client.to_remote_event(
        {
            "id": "evt2",
            "summary": "Holiday",
            "start": {"date": "2025-01-15"},
            "end": {"date": "2025-01-16"},
            "updated": "2025-01-19T10:30:00Z",
        }
    )

    assert event.all_day is True
    assert event.start == datetime(2025, 1, 15, 0, 0)
    assert event.end == datetime(2025, 1, 16, 0, 0)


def test_cancelled_tombstone_without_times(client):
    event = client.to_remote_event(
        {"id": "evt3", "status": "cancelled", "updated": "2025-01-19T10:30:00Z"}
    )

    assert event.is_cancelled is True
    assert event.start is None
    assert event.summary == ""


def test_local_event_request_body(client):
    local = LocalEvent(
        id="l1",
        user_id=USER_ID,
        title="Lunch",
        start_time=datetime(2025, 7, 1, 12, 0),
        end_time=datetime(2025, 7, 1, 13, 0),
        color="#33b679",
        updated_at=NOW,
    )

    body = client.to_google_format(local)

    assert body["summary"] == "Lunch"
    assert body["start"] == {"dateTime": "2025-07-01T12:00:00+02:00", "timeZone": "Europe/Paris"}
    assert body["end"]["dateTime"] == "2025-07-01T13:00:00+02:00"
    assert body["colorId"] == "2"


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


def test_list_changed_since_sends_watermark(client, session):
    session.request.return_value = _response(payload={"items": [ITEM]})

    items = client.list_changed_since("primary", NOW)

    assert [item["id"] for item in items] == ["evt1"]
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert method == "GET"
    assert url == "https://www.googleapis.com/calendar/v3/calendars/primary/events"
    assert kwargs["params"]["updatedMin"] == "2025-01-20T12:00:00Z"
    assert kwargs["headers"]["Authorization"] == "Bearer token-123"
    assert kwargs["timeout"] == 30.0


def test_list_failure_raises_read_error(client, session):
    session.request.return_value = _response(status_code=500)

    with pytest.raises(CalendarReadError):
        client.list_changed_since("primary", NOW)


def test_get_missing_event_raises_not_found(client, session):
    session.request.return_value = _response(status_code=404)

    with pytest.raises(NotFoundError):
        client.get_event("primary", "abc")


def test_get_cancelled_event_raises_not_found(client, session):
    session.request.return_value = _response(payload={**ITEM, "status": "cancelled"})

    with pytest.raises(NotFoundError):
        client.get_event("primary", "evt1")


def test_calendar_and_event_ids_are_quoted(client, session):
    session.request.return_value = _response(payload=ITEM)

    client.get_event("someone@example.com", "evt/1")

    url = session.request.call_args.args[1]
    assert url.endswith("/calendars/someone%40example.com/events/evt%2F1")


def test_search_converts_window_to_utc(client, session):
    session.request.return_value = _response(payload={"items": []})

    client.search_events(
        "primary", "Standup", datetime(2025, 1, 15, 9, 0), datetime(2025, 1, 15, 9, 15)
    )

    params = session.request.call_args.kwargs["params"]
    assert params["q"] == "Standup"
    assert params["timeMin"] == "2025-01-15T08:00:00Z"
    assert params["timeMax"] == "2025-01-15T08:15:00Z"


def test_create_returns_remote_id(client, session):
    session.request.return_value = _response(payload={"id": "new-id"})
    local = LocalEvent(
        id="l1",
        user_id=USER_ID,
        title="Lunch",
        start_time=datetime(2025, 1, 15, 12, 0),
        end_time=datetime(2025, 1, 15, 13, 0),
        updated_at=NOW,
    )

    assert client.create_event("primary", local) == "new-id"
    assert session.request.call_args.args[0] == "POST"


def test_write_failure_raises_write_error(client, session):
    session.request.return_value = _response(status_code=503)
    local = LocalEvent(
        id="l1",
        user_id=USER_ID,
        title="Lunch",
        start_time=datetime(2025, 1, 15, 12, 0),
        end_time=datetime(2025, 1, 15, 13, 0),
        updated_at=NOW,
    )

    with pytest.raises(CalendarWriteError):
        client.update_event("primary", "evt1", local)


# ---------------------------------------------------------------------------
# OAuth
# ---------------------------------------------------------------------------


@pytest.fixture
def oauth(google_config, session, clock):
    return GoogleOAuthClient(google_config, session=session, clock=clock)


def test_missing_client_credentials_are_rejected():
    with pytest.raises(ConfigurationError):
        GoogleOAuthClient(GoogleConfig(client_id=None, client_secret=None))


def test_authorization_url_requests_offline_access(oauth):
    url = oauth.authorization_url("state-1")

    assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    assert "access_type=offline" in url
    assert "prompt=consent" in url
    assert "state=state-1" in url


def test_exchange_code_returns_grant(oauth, session):
    session.post.return_value = _response(
        payload={"access_token": "a1", "refresh_token": "r1", "expires_in": 3599}
    )

    grant = oauth.exchange_code("code-1")

    assert grant.access_token == "a1"
    assert grant.refresh_token == "r1"
    assert grant.expires_at == NOW + timedelta(seconds=3599)
    assert session.post.call_args.kwargs["data"]["grant_type"] == "authorization_code"


def test_rejected_refresh_raises_auth_expired(oauth, session):
    session.post.return_value = _response(status_code=400, payload={"error": "invalid_grant"})

    with pytest.raises(AuthExpiredError, match="invalid_grant"):
        oauth.refresh("refresh-1")


def test_refresh_server_error_is_not_auth_expired(oauth, session):
    session.post.return_value = _response(status_code=503)

    with pytest.raises(AuthenticationError) as exc_info:
        oauth.refresh("refresh-1")
    assert not isinstance(exc_info.value, AuthExpiredError)


def test_refresh_without_expiry_uses_default_lifetime(oauth, session):
    session.post.return_value = _response(payload={"access_token": "a2"})

    grant = oauth.refresh("refresh-1")

    assert grant.refresh_token is None
    assert grant.expires_at == NOW + timedelta(hours=1)
