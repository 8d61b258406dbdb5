"""Local and remote calendar event data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class SyncStatus(str, Enum):
    """Reconciliation state of a local event."""

    UNSYNCED = "unsynced"
    SYNCED = "synced"


class RemoteStatus(str, Enum):
    """Remote entry status as reported by the provider."""

    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


class LocalEvent(BaseModel):
    """Event row owned by the local store.

    start_time and end_time are naive wall-clock times in the reference
    timezone. updated_at is the authoritative instant for conflict
    resolution on the local side.
    """

    id: str
    user_id: str
    title: str
    description: str = ""
    start_time: datetime
    end_time: datetime
    color: Optional[str] = None

    # Sync metadata, owned by the sync engine
    remote_id: Optional[str] = None
    sync_status: SyncStatus = SyncStatus.UNSYNCED
    last_synced_at: Optional[datetime] = None

    updated_at: datetime

    @property
    def is_linked(self) -> bool:
        return self.remote_id is not None


class RemoteEvent(BaseModel):
    """Remote calendar entry translated to local wall-clock time.

    start and end are None when the provider sent neither a dateTime nor a
    date (cancelled tombstones usually look like that).
    """

    id: str
    summary: str
    description: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    all_day: bool = False
    color: Optional[str] = None
    updated: datetime
    status: RemoteStatus = RemoteStatus.CONFIRMED

    @property
    def is_cancelled(self) -> bool:
        return self.status == RemoteStatus.CANCELLED
