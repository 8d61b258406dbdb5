"""Persistence of per-user OAuth credentials."""

import logging
from datetime import datetime
from typing import Optional

from ..models.credential import CredentialRecord
from ..utils.date_utils import ensure_utc
from .database import LocalStore

logger = logging.getLogger(__name__)

TABLE = "credentials"


class CredentialStore:
    """Pure data access for CredentialRecord rows, keyed by user id."""

    def __init__(self, store: LocalStore):
        self.store = store

    def get(self, user_id: str) -> Optional[CredentialRecord]:
        rows = self.store.select(TABLE, {"user_id": user_id})
        if not rows:
            return None
        return CredentialRecord.model_validate(rows[0])

    def save(self, credential: CredentialRecord) -> CredentialRecord:
        """Insert or replace the user's credential (OAuth callback).

        Reconnecting an existing user keeps the stored last_sync_at, so the
        next pass resumes from the previous watermark.

        Returns:
            The credential as stored
        """
        row = credential.model_dump()
        existing = self.get(credential.user_id)
        if existing is None:
            self.store.insert(TABLE, row)
            logger.info(f"Stored new credential for user {credential.user_id}")
            return credential

        patch = {k: v for k, v in row.items() if k not in ("user_id", "last_sync_at")}
        self.store.update(TABLE, credential.user_id, patch)
        logger.info(f"Replaced credential for user {credential.user_id}")
        return credential.model_copy(update={"last_sync_at": existing.last_sync_at})

    def update_tokens(self, user_id: str, access_token: str, expires_at: datetime) -> None:
        self.store.update(
            TABLE,
            user_id,
            {"access_token": access_token, "token_expires_at": expires_at},
        )

    def mark_synced(self, user_id: str, synced_at: datetime) -> None:
        self.store.update(TABLE, user_id, {"last_sync_at": ensure_utc(synced_at)})

    def set_sync_enabled(self, user_id: str, enabled: bool) -> None:
        self.store.update(TABLE, user_id, {"sync_enabled": enabled})

    def delete(self, user_id: str) -> None:
        self.store.delete(TABLE, user_id)
