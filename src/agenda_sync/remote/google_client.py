"""Google Calendar client using the Calendar v3 REST API directly."""

import logging
from datetime import date, datetime
from typing import Any, Optional
from urllib.parse import quote

import requests

from ..config import GoogleConfig
from ..models.event import LocalEvent, RemoteEvent, RemoteStatus
from ..utils.colors import color_from_google_id, google_id_from_color
from ..utils.date_utils import (
    day_start,
    format_rfc3339,
    from_reference_time,
    parse_rfc3339,
    to_reference_time,
)
from ..utils.exceptions import CalendarReadError, CalendarWriteError, NotFoundError
from .base import RemoteCalendarClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 250


class GoogleCalendarClient(RemoteCalendarClient):
    """Read and write events on a Google calendar with a bearer token."""

    def __init__(
        self,
        access_token: str,
        config: GoogleConfig,
        reference_timezone: str = "Europe/Paris",
        page_size: int = DEFAULT_PAGE_SIZE,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Google Calendar client.

        Args:
            access_token: Valid OAuth access token
            config: Google configuration (API base URL, request timeout)
            reference_timezone: IANA zone local event times are expressed in
            page_size: Maximum entries fetched by list_changed_since
            session: HTTP session (a new one by default)
        """
        self.access_token = access_token
        self.config = config
        self.reference_timezone = reference_timezone
        self.page_size = page_size
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _events_url(self, calendar_id: str, remote_id: Optional[str] = None) -> str:
        url = f"{self.config.api_base}/calendars/{quote(calendar_id, safe='')}/events"
        if remote_id:
            url += f"/{quote(remote_id, safe='')}"
        return url

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        return self.session.request(
            method,
            url,
            headers=self._headers(),
            timeout=self.config.request_timeout,
            **kwargs,
        )

    # ------------------------------------------------------------------ #
    # Reads                                                                #
    # ------------------------------------------------------------------ #

    def list_changed_since(self, calendar_id: str, since: datetime) -> list[dict[str, Any]]:
        params = {
            "updatedMin": format_rfc3339(since),
            "singleEvents": "true",
            "orderBy": "updated",
            "maxResults": self.page_size,
        }
        try:
            resp = self._request("GET", self._events_url(calendar_id), params=params)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            raise CalendarReadError(f"Failed to list Google events: {e}") from e

        items = payload.get("items", [])
        if payload.get("nextPageToken"):
            logger.warning(
                f"More than {self.page_size} changed entries, the rest is picked up by later runs"
            )
        logger.info(f"Read {len(items)} changed entries from Google")
        return items

    def get_event(self, calendar_id: str, remote_id: str) -> RemoteEvent:
        try:
            resp = self._request("GET", self._events_url(calendar_id, remote_id))
        except requests.RequestException as e:
            raise CalendarReadError(f"Failed to get Google event {remote_id}: {e}") from e

        if resp.status_code in (404, 410):
            raise NotFoundError(f"Google event {remote_id} not found")
        try:
            resp.raise_for_status()
        except requests.RequestException as e:
            raise CalendarReadError(f"Failed to get Google event {remote_id}: {e}") from e

        event = self.to_remote_event(resp.json())
        # Deleted entries stay readable as cancelled tombstones
        if event.is_cancelled:
            raise NotFoundError(f"Google event {remote_id} was deleted")
        return event

    def search_events(
        self,
        calendar_id: str,
        title: str,
        window_start: datetime,
        window_end: datetime,
    ) -> list[RemoteEvent]:
        params = {
            "q": title,
            "timeMin": format_rfc3339(from_reference_time(window_start, self.reference_timezone)),
            "timeMax": format_rfc3339(from_reference_time(window_end, self.reference_timezone)),
            "singleEvents": "true",
        }
        try:
            resp = self._request("GET", self._events_url(calendar_id), params=params)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise CalendarReadError(f"Failed to search Google events: {e}") from e

        candidates = []
        for item in resp.json().get("items", []):
            try:
                candidates.append(self.to_remote_event(item))
            except (KeyError, ValueError) as e:
                logger.warning(f"Ignoring malformed search result {item.get('id')}: {e}")
        return candidates

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    def create_event(self, calendar_id: str, event: LocalEvent) -> str:
        try:
            resp = self._request("POST", self._events_url(calendar_id), json=self.to_google_format(event))
            resp.raise_for_status()
        except requests.RequestException as e:
            raise CalendarWriteError(f"Failed to create Google event: {e}") from e

        remote_id = resp.json().get("id", "")
        if not remote_id:
            raise CalendarWriteError("Google returned no id for the created event")
        logger.info(f"Created Google event: {event.title}")
        return remote_id

    def update_event(self, calendar_id: str, remote_id: str, event: LocalEvent) -> None:
        try:
            resp = self._request(
                "PUT",
                self._events_url(calendar_id, remote_id),
                json=self.to_google_format(event),
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise CalendarWriteError(f"Failed to update Google event {remote_id}: {e}") from e
        logger.info(f"Updated Google event: {event.title}")

    # ------------------------------------------------------------------ #
    # Translation                                                          #
    # ------------------------------------------------------------------ #

    def to_google_format(self, event: LocalEvent) -> dict[str, Any]:
        """Request body for insert/update; times carry an explicit timezone."""
        return {
            "summary": event.title,
            "description": event.description or "",
            "start": self._to_google_time(event.start_time),
            "end": self._to_google_time(event.end_time),
            "colorId": google_id_from_color(event.color),
        }

    def _to_google_time(self, value: datetime) -> dict[str, str]:
        local = from_reference_time(value, self.reference_timezone)
        return {
            "dateTime": local.isoformat(),
            "timeZone": self.reference_timezone,
        }

    def to_remote_event(self, item: dict[str, Any]) -> RemoteEvent:
        """Transform a Calendar API resource into a RemoteEvent."""
        start, all_day = self._parse_google_time(item.get("start"))
        end, _ = self._parse_google_time(item.get("end"))

        return RemoteEvent(
            id=item["id"],
            summary=item.get("summary") or "",
            description=item.get("description") or "",
            start=start,
            end=end,
            all_day=all_day,
            color=color_from_google_id(item.get("colorId")),
            updated=parse_rfc3339(item["updated"]),
            status=_parse_status(item.get("status")),
        )

    def _parse_google_time(self, value: Optional[dict[str, str]]) -> tuple[Optional[datetime], bool]:
        """Return (naive reference time, is_all_day) for a start/end object."""
        if not value:
            return None, False
        if value.get("dateTime"):
            parsed = datetime.fromisoformat(value["dateTime"].replace("Z", "+00:00"))
            return to_reference_time(parsed, self.reference_timezone, value.get("timeZone")), False
        if value.get("date"):
            # All-day entries span local midnight to midnight
            return day_start(date.fromisoformat(value["date"])), True
        return None, False


def _parse_status(value: Optional[str]) -> RemoteStatus:
    try:
        return RemoteStatus(value or RemoteStatus.CONFIRMED.value)
    except ValueError:
        return RemoteStatus.CONFIRMED
