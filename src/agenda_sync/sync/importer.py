"""Remote → local import pass."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from ..models.event import LocalEvent, RemoteEvent
from ..remote.base import RemoteCalendarClient
from ..storage.event_store import EventStore
from ..utils.date_utils import utcnow
from .conflicts import ConflictPolicy, ConflictResolver, Winner
from .matching import is_same_event

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Result of an import pass."""

    imported: int = 0
    conflicts: int = 0
    deleted: int = 0
    linked: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    # Local events this pass left identical to their remote counterpart
    reconciled_ids: set[str] = field(default_factory=set)


class Importer:
    """Folds remote changes since a watermark into the local event store."""

    def __init__(
        self,
        client: RemoteCalendarClient,
        events: EventStore,
        resolver: Optional[ConflictPolicy] = None,
        dedup_tolerance: timedelta = timedelta(seconds=60),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize importer.

        Args:
            client: Remote calendar client
            events: Local event store
            resolver: Conflict policy (last-write-wins by default)
            dedup_tolerance: Maximum start time difference when matching a
                new remote entry to an unlinked local event
            clock: Returns the current UTC time
        """
        self.client = client
        self.events = events
        self.resolver = resolver or ConflictResolver()
        self.dedup_tolerance = dedup_tolerance
        self.clock = clock or utcnow

    def import_since(self, user_id: str, calendar_id: str, since: datetime) -> ImportResult:
        """
        Import remote entries changed since ``since``.

        A failure listing the remote changes is recorded as an error; a
        failure on one entry, including a malformed one, is recorded and the
        loop moves on.

        Returns:
            ImportResult with counts and per-entry error messages
        """
        result = ImportResult()

        try:
            items = self.client.list_changed_since(calendar_id, since)
        except Exception as e:
            error_msg = f"Failed to list remote changes: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)
            return result

        for item in items:
            try:
                remote = self.client.to_remote_event(item)
                self._import_one(user_id, remote, result)
            except Exception as e:
                error_msg = f"Failed to import event '{_describe(item)}': {e}"
                logger.error(error_msg)
                result.errors.append(error_msg)

        logger.info(
            f"Import complete: {result.imported} imported, "
            f"{result.linked} linked, "
            f"{result.deleted} deleted, "
            f"{result.conflicts} conflicts, "
            f"{len(result.errors)} errors"
        )
        return result

    def _import_one(self, user_id: str, remote: RemoteEvent, result: ImportResult) -> None:
        local = self.events.find_by_remote_id(user_id, remote.id)

        if remote.is_cancelled:
            if local is not None:
                self.events.delete(local.id)
                result.deleted += 1
                logger.info(f"Deleted local event '{local.title}' (cancelled remotely)")
            return

        if remote.start is None or remote.end is None:
            logger.warning(f"Skipping remote event {remote.id}: no start or end time")
            result.skipped += 1
            return

        if local is None:
            match = self._find_unlinked_match(user_id, remote)
            if match is not None:
                self._link_match(match, remote, result)
                return
            created = self.events.create_from_remote(user_id, remote, synced_at=self.clock())
            result.imported += 1
            result.reconciled_ids.add(created.id)
            logger.debug(f"Imported new event '{remote.summary}'")
            return

        winner = self.resolver.resolve(local.updated_at, remote.updated)
        if winner == Winner.REMOTE:
            self.events.apply_remote(local.id, remote, synced_at=self.clock())
            result.imported += 1
            result.reconciled_ids.add(local.id)
            logger.debug(f"Updated local event '{local.title}' from remote")
        else:
            result.conflicts += 1
            if winner == Winner.NONE:
                result.reconciled_ids.add(local.id)
            logger.debug(f"Kept local version of '{local.title}' ({winner.value})")

    def _find_unlinked_match(self, user_id: str, remote: RemoteEvent) -> Optional[LocalEvent]:
        """Unlinked local event created independently for the same occurrence."""
        for candidate in self.events.list_unlinked(user_id, remote.summary):
            if is_same_event(
                candidate.title,
                candidate.start_time,
                remote.summary,
                remote.start,
                self.dedup_tolerance,
            ):
                return candidate
        return None

    def _link_match(self, local: LocalEvent, remote: RemoteEvent, result: ImportResult) -> None:
        self.events.link_remote(local.id, remote.id, synced_at=self.clock())
        result.linked += 1
        logger.info(f"Linked '{local.title}' to existing remote event {remote.id}")

        winner = self.resolver.resolve(local.updated_at, remote.updated)
        if winner == Winner.REMOTE:
            self.events.apply_remote(local.id, remote, synced_at=self.clock())
            result.imported += 1
            result.reconciled_ids.add(local.id)
        elif winner == Winner.NONE:
            result.reconciled_ids.add(local.id)
        # A newer local version is pushed by the export pass


def _describe(item: dict[str, Any]) -> str:
    return item.get("summary") or item.get("id") or "unknown"
