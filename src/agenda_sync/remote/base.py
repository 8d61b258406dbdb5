"""Abstract base class for remote calendar clients."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from ..models.event import LocalEvent, RemoteEvent


class RemoteCalendarClient(ABC):
    """Read/write access to one remote calendar provider.

    Implementations own every timezone conversion: RemoteEvent start/end are
    naive local times in the reference timezone, exactly like LocalEvent.
    """

    @abstractmethod
    def list_changed_since(self, calendar_id: str, since: datetime) -> list[dict[str, Any]]:
        """
        List raw provider resources changed since ``since``, oldest change first.

        Cancelled entries are included so deletions can be propagated. Each
        resource is translated separately with ``to_remote_event`` so that one
        malformed entry only fails itself.

        Raises:
            CalendarReadError: If listing fails
        """

    @abstractmethod
    def to_remote_event(self, item: dict[str, Any]) -> RemoteEvent:
        """
        Translate one provider resource into a RemoteEvent.

        Raises:
            ValueError: If the resource is malformed
            KeyError: If a required field is missing
        """

    @abstractmethod
    def get_event(self, calendar_id: str, remote_id: str) -> RemoteEvent:
        """
        Fetch one entry.

        Raises:
            NotFoundError: If the entry no longer exists remotely
            CalendarReadError: If the fetch fails for another reason
        """

    @abstractmethod
    def create_event(self, calendar_id: str, event: LocalEvent) -> str:
        """
        Create a remote entry from a local event.

        Returns:
            Remote id of the created entry

        Raises:
            CalendarWriteError: If creation fails
        """

    @abstractmethod
    def update_event(self, calendar_id: str, remote_id: str, event: LocalEvent) -> None:
        """
        Overwrite a remote entry with a local event's fields.

        Raises:
            CalendarWriteError: If the update fails
        """

    @abstractmethod
    def search_events(
        self,
        calendar_id: str,
        title: str,
        window_start: datetime,
        window_end: datetime,
    ) -> list[RemoteEvent]:
        """
        Search entries by title overlapping a local time window.

        Raises:
            CalendarReadError: If the search fails
        """
