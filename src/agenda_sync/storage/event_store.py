"""Persistence of local calendar events."""

import logging
import uuid
from datetime import datetime
from typing import Optional

from ..models.event import LocalEvent, RemoteEvent, SyncStatus
from ..utils.date_utils import ensure_utc
from .database import LocalStore

logger = logging.getLogger(__name__)

TABLE = "events"

DEFAULT_TITLE = "(No title)"


class EventStore:
    """Typed access to the events table."""

    def __init__(self, store: LocalStore):
        self.store = store

    def get(self, event_id: str) -> Optional[LocalEvent]:
        rows = self.store.select(TABLE, {"id": event_id})
        return LocalEvent.model_validate(rows[0]) if rows else None

    def find_by_remote_id(self, user_id: str, remote_id: str) -> Optional[LocalEvent]:
        rows = self.store.select(TABLE, {"user_id": user_id, "remote_id": remote_id})
        if len(rows) > 1:
            logger.warning(f"{len(rows)} local events linked to remote id {remote_id}")
        return LocalEvent.model_validate(rows[0]) if rows else None

    def list_for_user(self, user_id: str) -> list[LocalEvent]:
        rows = self.store.select(TABLE, {"user_id": user_id}, order_by="start_time")
        return [LocalEvent.model_validate(row) for row in rows]

    def list_changed_since(self, user_id: str, since: datetime) -> list[LocalEvent]:
        """Events of ``user_id`` whose updated_at is at or after ``since``."""
        rows = self.store.select(
            TABLE,
            {"user_id": user_id, "updated_at": (">=", ensure_utc(since))},
            order_by="updated_at",
        )
        return [LocalEvent.model_validate(row) for row in rows]

    def list_unlinked(self, user_id: str, title: str) -> list[LocalEvent]:
        """Events of ``user_id`` titled ``title`` that have no remote counterpart."""
        rows = self.store.select(
            TABLE,
            {"user_id": user_id, "remote_id": None, "title": title},
            order_by="start_time",
        )
        return [LocalEvent.model_validate(row) for row in rows]

    def create(
        self,
        user_id: str,
        title: str,
        start_time: datetime,
        end_time: datetime,
        updated_at: datetime,
        description: str = "",
        color: Optional[str] = None,
    ) -> LocalEvent:
        """Create an unsynced event, as the UI does."""
        event = LocalEvent(
            id=uuid.uuid4().hex,
            user_id=user_id,
            title=title,
            description=description,
            start_time=start_time,
            end_time=end_time,
            color=color,
            updated_at=ensure_utc(updated_at),
        )
        self.store.insert(TABLE, event.model_dump())
        return event

    def update(self, event_id: str, updated_at: datetime, **fields) -> None:
        """Edit user-visible fields, bumping updated_at.

        Naive instants are taken as UTC so they order correctly against the
        sync watermark.
        """
        self.store.update(TABLE, event_id, {**fields, "updated_at": ensure_utc(updated_at)})

    def create_from_remote(
        self,
        user_id: str,
        remote: RemoteEvent,
        synced_at: datetime,
    ) -> LocalEvent:
        """Create a linked local copy of a remote entry.

        updated_at takes the remote entry's updated instant so both sides
        carry the same authoritative timestamp.
        """
        event = LocalEvent(
            id=uuid.uuid4().hex,
            user_id=user_id,
            title=remote.summary or DEFAULT_TITLE,
            description=remote.description or "",
            start_time=remote.start,
            end_time=remote.end,
            color=remote.color,
            remote_id=remote.id,
            sync_status=SyncStatus.SYNCED,
            last_synced_at=ensure_utc(synced_at),
            updated_at=remote.updated,
        )
        self.store.insert(TABLE, event.model_dump())
        return event

    def apply_remote(
        self,
        event_id: str,
        remote: RemoteEvent,
        synced_at: datetime,
    ) -> None:
        """Overwrite an event with a newer remote version."""
        self.store.update(
            TABLE,
            event_id,
            {
                "title": remote.summary or DEFAULT_TITLE,
                "description": remote.description or "",
                "start_time": remote.start,
                "end_time": remote.end,
                "color": remote.color,
                "sync_status": SyncStatus.SYNCED,
                "last_synced_at": ensure_utc(synced_at),
                "updated_at": remote.updated,
            },
        )

    def link_remote(self, event_id: str, remote_id: str, synced_at: datetime) -> None:
        """Point an event at its remote counterpart without touching updated_at."""
        self.store.update(
            TABLE,
            event_id,
            {
                "remote_id": remote_id,
                "sync_status": SyncStatus.SYNCED,
                "last_synced_at": ensure_utc(synced_at),
            },
        )

    def mark_synced(self, event_id: str, synced_at: datetime) -> None:
        self.store.update(
            TABLE,
            event_id,
            {"sync_status": SyncStatus.SYNCED, "last_synced_at": ensure_utc(synced_at)},
        )

    def delete(self, event_id: str) -> None:
        self.store.delete(TABLE, event_id)

    def unlink_all(self, user_id: str) -> int:
        """Drop every remote link of ``user_id``; return the number of events unlinked."""
        return self.store.update_where(
            TABLE,
            {"user_id": user_id, "remote_id": ("!=", "")},
            {
                "remote_id": None,
                "sync_status": SyncStatus.UNSYNCED,
                "last_synced_at": None,
            },
        )
