"""Local → remote export pass."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from ..models.event import LocalEvent, RemoteEvent
from ..remote.base import RemoteCalendarClient
from ..storage.event_store import EventStore
from ..utils.date_utils import utcnow
from ..utils.exceptions import NotFoundError
from .conflicts import ConflictPolicy, ConflictResolver, Winner
from .matching import is_same_event

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Result of an export pass."""

    exported: int = 0
    conflicts: int = 0
    created: int = 0
    linked: int = 0
    recreated: int = 0
    errors: list[str] = field(default_factory=list)


class Exporter:
    """Folds local changes since a watermark into the remote calendar."""

    def __init__(
        self,
        client: RemoteCalendarClient,
        events: EventStore,
        resolver: Optional[ConflictPolicy] = None,
        dedup_tolerance: timedelta = timedelta(seconds=60),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize exporter.

        Args:
            client: Remote calendar client
            events: Local event store
            resolver: Conflict policy (last-write-wins by default)
            dedup_tolerance: Maximum start time difference for the dedup search
            clock: Returns the current UTC time
        """
        self.client = client
        self.events = events
        self.resolver = resolver or ConflictResolver()
        self.dedup_tolerance = dedup_tolerance
        self.clock = clock or utcnow

    def export_since(
        self,
        user_id: str,
        calendar_id: str,
        since: datetime,
        reconciled_ids: Optional[Iterable[str]] = None,
    ) -> ExportResult:
        """
        Export local events changed since ``since``.

        Args:
            user_id: Owner of the local events
            calendar_id: Remote calendar to write to
            since: Watermark of the pass
            reconciled_ids: Local events the import pass of the same run left
                identical to their remote counterpart; they are not exported

        Returns:
            ExportResult with counts and per-event error messages
        """
        result = ExportResult()

        try:
            local_events = self.events.list_changed_since(user_id, since)
        except Exception as e:
            error_msg = f"Failed to read local changes: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)
            return result

        skip = set(reconciled_ids or ())
        for local in local_events:
            if local.id in skip:
                logger.debug(f"'{local.title}' was just reconciled by the import pass")
                continue
            try:
                if local.is_linked:
                    self._export_linked(calendar_id, local, result)
                else:
                    self._export_unlinked(user_id, calendar_id, local, result)
            except Exception as e:
                error_msg = f"Failed to export event '{local.title}': {e}"
                logger.error(error_msg)
                result.errors.append(error_msg)

        logger.info(
            f"Export complete: {result.exported} exported "
            f"({result.created} created, {result.linked} linked, {result.recreated} recreated), "
            f"{result.conflicts} conflicts, "
            f"{len(result.errors)} errors"
        )
        return result

    def _export_linked(self, calendar_id: str, local: LocalEvent, result: ExportResult) -> None:
        try:
            remote = self.client.get_event(calendar_id, local.remote_id)
        except NotFoundError:
            logger.warning(
                f"Remote event {local.remote_id} for '{local.title}' is gone, recreating"
            )
            remote_id = self.client.create_event(calendar_id, local)
            self.events.link_remote(local.id, remote_id, synced_at=self.clock())
            result.exported += 1
            result.recreated += 1
            return

        winner = self.resolver.resolve(local.updated_at, remote.updated)
        if winner == Winner.LOCAL:
            self.client.update_event(calendar_id, local.remote_id, local)
            self.events.mark_synced(local.id, synced_at=self.clock())
            result.exported += 1
        else:
            result.conflicts += 1
            logger.debug(f"Kept remote version of '{local.title}' ({winner.value})")

    def _export_unlinked(
        self, user_id: str, calendar_id: str, local: LocalEvent, result: ExportResult
    ) -> None:
        candidates = self.client.search_events(
            calendar_id, local.title, local.start_time, local.end_time
        )
        duplicate = self._find_duplicate(user_id, local, candidates)
        if duplicate is not None:
            self.events.link_remote(local.id, duplicate.id, synced_at=self.clock())
            result.exported += 1
            result.linked += 1
            logger.info(f"Linked '{local.title}' to existing remote event {duplicate.id}")
            return

        remote_id = self.client.create_event(calendar_id, local)
        self.events.link_remote(local.id, remote_id, synced_at=self.clock())
        result.exported += 1
        result.created += 1

    def _find_duplicate(
        self, user_id: str, local: LocalEvent, candidates: list[RemoteEvent]
    ) -> Optional[RemoteEvent]:
        """Remote entry with the same title starting within the tolerance, if unclaimed."""
        for candidate in candidates:
            if candidate.is_cancelled:
                continue
            if not is_same_event(
                local.title,
                local.start_time,
                candidate.summary,
                candidate.start,
                self.dedup_tolerance,
            ):
                continue
            if self.events.find_by_remote_id(user_id, candidate.id) is not None:
                # Already the counterpart of another local event
                continue
            return candidate
        return None

