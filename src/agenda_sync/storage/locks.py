"""Per-user mutual exclusion for sync passes."""

import logging
import sqlite3
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..utils.date_utils import utcnow
from ..utils.exceptions import SyncInProgressError
from .database import LocalStore

logger = logging.getLogger(__name__)

TABLE = "sync_locks"


class SyncLock:
    """Advisory lock row in the sync_locks table.

    A lock older than ``timeout`` is considered abandoned (crashed run) and
    may be taken over.
    """

    def __init__(
        self,
        store: LocalStore,
        user_id: str,
        timeout: timedelta = timedelta(minutes=10),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.user_id = user_id
        self.timeout = timeout
        self.clock = clock or utcnow
        self._held = False

    def acquire(self) -> None:
        now = self.clock()
        # Clear a stale lock before trying to take it
        stale = self.store.select(
            TABLE, {"user_id": self.user_id, "acquired_at": ("<", now - self.timeout)}
        )
        if stale:
            logger.warning(f"Taking over stale sync lock for user {self.user_id}")
            self.store.delete(TABLE, self.user_id)

        try:
            self.store.insert(TABLE, {"user_id": self.user_id, "acquired_at": now})
        except sqlite3.IntegrityError as e:
            raise SyncInProgressError(
                f"A sync is already running for user {self.user_id}"
            ) from e
        self._held = True

    def release(self) -> None:
        if self._held:
            self.store.delete(TABLE, self.user_id)
            self._held = False

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
