"""Reconciliation pass orchestration."""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from ..auth.token_manager import TokenLifecycleManager
from ..models.credential import CredentialRecord
from ..remote.base import RemoteCalendarClient
from ..storage.credential_store import CredentialStore
from ..storage.database import LocalStore
from ..storage.event_store import EventStore
from ..storage.locks import SyncLock
from ..utils.date_utils import default_watermark, utcnow
from ..utils.exceptions import NotConnectedError, SyncDisabledError
from .conflicts import ConflictPolicy, ConflictResolver
from .exporter import Exporter
from .importer import Importer

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], RemoteCalendarClient]


@dataclass
class SyncResult:
    """Result of a reconciliation pass."""

    success: bool = False
    imported: int = 0
    exported: int = 0
    conflicts: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SyncOrchestrator:
    """Runs one import-then-export reconciliation pass per invocation."""

    def __init__(
        self,
        store: LocalStore,
        token_manager: TokenLifecycleManager,
        client_factory: ClientFactory,
        resolver: Optional[ConflictPolicy] = None,
        lookback_days: int = 30,
        dedup_tolerance: timedelta = timedelta(seconds=60),
        lock_timeout: timedelta = timedelta(minutes=10),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize sync orchestrator.

        Args:
            store: Local store holding credentials, events and sync locks
            token_manager: Supplies valid access tokens
            client_factory: Builds a remote client from an access token
            resolver: Conflict policy shared by import and export
            lookback_days: Window of the first-ever sync of an account
            dedup_tolerance: Start time tolerance of the import and export dedup matching
            lock_timeout: Age after which a sync lock counts as abandoned
            clock: Returns the current UTC time
        """
        self.store = store
        self.credentials = CredentialStore(store)
        self.events = EventStore(store)
        self.token_manager = token_manager
        self.client_factory = client_factory
        self.resolver = resolver or ConflictResolver()
        self.lookback_days = lookback_days
        self.dedup_tolerance = dedup_tolerance
        self.lock_timeout = lock_timeout
        self.clock = clock or utcnow

    def load_credential(self, user_id: str) -> CredentialRecord:
        """
        Load a credential that can be synced.

        Raises:
            NotConnectedError: If no credential is on file
            SyncDisabledError: If sync is switched off for the user
        """
        credential = self.credentials.get(user_id)
        if credential is None:
            raise NotConnectedError("Calendar account is not connected")
        if not credential.sync_enabled:
            raise SyncDisabledError("Calendar synchronization is disabled")
        return credential

    def run_sync(self, user_id: str) -> SyncResult:
        """
        Run one reconciliation pass for ``user_id``.

        Credential and token failures abort before anything is mutated.
        Per-item failures are collected in the result and the watermark
        still advances.

        Raises:
            NotConnectedError: If no credential is on file
            SyncDisabledError: If sync is switched off for the user
            SyncInProgressError: If another pass holds the user's lock
            AuthenticationError: If no valid access token can be obtained
        """
        with SyncLock(self.store, user_id, timeout=self.lock_timeout, clock=self.clock):
            return self._run_locked(user_id)

    def _run_locked(self, user_id: str) -> SyncResult:
        credential = self.load_credential(user_id)
        access_token = self.token_manager.ensure_valid_token(credential)
        client = self.client_factory(access_token)

        since = credential.last_sync_at or default_watermark(self.clock(), self.lookback_days)
        calendar_id = credential.remote_calendar_id
        logger.info(f"Starting sync for user {user_id} (changes since {since.isoformat()})")

        importer = Importer(
            client,
            self.events,
            resolver=self.resolver,
            dedup_tolerance=self.dedup_tolerance,
            clock=self.clock,
        )
        import_result = importer.import_since(user_id, calendar_id, since)

        exporter = Exporter(
            client,
            self.events,
            resolver=self.resolver,
            dedup_tolerance=self.dedup_tolerance,
            clock=self.clock,
        )
        export_result = exporter.export_since(
            user_id, calendar_id, since, reconciled_ids=import_result.reconciled_ids
        )

        self.credentials.mark_synced(user_id, self.clock())

        result = SyncResult(
            imported=import_result.imported,
            exported=export_result.exported,
            conflicts=import_result.conflicts + export_result.conflicts,
            errors=import_result.errors + export_result.errors,
        )
        result.success = not result.errors

        logger.info(
            f"Sync complete for user {user_id}: {result.imported} imported, "
            f"{result.exported} exported, "
            f"{result.conflicts} conflicts, "
            f"{len(result.errors)} errors"
        )
        return result
