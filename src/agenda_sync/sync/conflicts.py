"""Conflict resolution between local and remote versions of an event."""

from datetime import datetime
from enum import Enum
from typing import Protocol

from ..utils.date_utils import ensure_utc


class Winner(str, Enum):
    """Which side's version should be kept."""

    LOCAL = "local"
    REMOTE = "remote"
    NONE = "none"  # equal timestamps, already consistent


class ConflictPolicy(Protocol):
    """Protocol for conflict resolution policies."""

    def resolve(self, local_updated: datetime, remote_updated: datetime) -> Winner:
        """
        Decide which version of a record present on both sides wins.

        Args:
            local_updated: LocalEvent.updated_at
            remote_updated: RemoteEvent.updated

        Returns:
            Winner of the comparison
        """
        ...


class ConflictResolver:
    """Last-write-wins on each side's authoritative update timestamp.

    Whole-record and without clock skew correction; a tie mutates nothing.
    """

    def resolve(self, local_updated: datetime, remote_updated: datetime) -> Winner:
        local_updated = ensure_utc(local_updated)
        remote_updated = ensure_utc(remote_updated)
        if local_updated > remote_updated:
            return Winner.LOCAL
        if remote_updated > local_updated:
            return Winner.REMOTE
        return Winner.NONE
