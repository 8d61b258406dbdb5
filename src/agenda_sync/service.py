"""Application service wiring the sync engine to configuration."""

import base64
import hashlib
import hmac
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from .auth.base import OAuthProvider
from .auth.google_oauth import GoogleOAuthClient
from .auth.token_manager import TokenLifecycleManager
from .config import AppConfig
from .models.credential import CredentialRecord
from .remote.google_client import GoogleCalendarClient
from .storage.credential_store import CredentialStore
from .storage.database import LocalStore
from .storage.event_store import EventStore
from .sync.engine import ClientFactory, SyncOrchestrator, SyncResult
from .utils.date_utils import utcnow
from .utils.exceptions import AuthenticationError, CalendarSyncError

logger = logging.getLogger(__name__)


class CalendarSyncService:
    """Connect, sync, inspect and disconnect a user's remote calendar."""

    def __init__(
        self,
        config: AppConfig,
        store: LocalStore,
        oauth: Optional[OAuthProvider] = None,
        client_factory: Optional[ClientFactory] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the service.

        Args:
            config: Application configuration
            store: Connected local store
            oauth: OAuth provider (Google by default)
            client_factory: Builds a remote client from an access token
                (Google Calendar by default)
            clock: Returns the current UTC time
        """
        self.config = config
        self.store = store
        self.clock = clock or utcnow
        self.oauth = oauth or GoogleOAuthClient(config.google, clock=self.clock)
        self.client_factory = client_factory or self._google_client
        self.credentials = CredentialStore(store)
        self.events = EventStore(store)

        self.token_manager = TokenLifecycleManager(
            self.oauth,
            self.credentials,
            refresh_margin=timedelta(minutes=config.token_refresh_margin_minutes),
            clock=self.clock,
        )
        self.orchestrator = SyncOrchestrator(
            store,
            self.token_manager,
            self.client_factory,
            lookback_days=config.sync_lookback_days,
            dedup_tolerance=timedelta(seconds=config.dedup_tolerance_seconds),
            lock_timeout=timedelta(seconds=config.sync_lock_timeout_seconds),
            clock=self.clock,
        )

    def _google_client(self, access_token: str) -> GoogleCalendarClient:
        return GoogleCalendarClient(
            access_token,
            self.config.google,
            reference_timezone=self.config.reference_timezone,
            page_size=self.config.sync_page_size,
        )

    # ------------------------------------------------------------------ #
    # Sync and status                                                      #
    # ------------------------------------------------------------------ #

    def run_sync(self, user_id: str) -> SyncResult:
        return self.orchestrator.run_sync(user_id)

    def status(self, user_id: str) -> dict[str, Any]:
        """Connection status of ``user_id``; reads the credential store only."""
        credential = self.credentials.get(user_id)
        if credential is None:
            return {"connected": False}
        return {
            "connected": True,
            "email": credential.remote_account_email,
            "calendar_id": credential.remote_calendar_id,
            "last_sync": credential.last_sync_at,
            "sync_enabled": credential.sync_enabled,
        }

    # ------------------------------------------------------------------ #
    # OAuth handshake                                                      #
    # ------------------------------------------------------------------ #

    def authorization_url(self, user_id: str) -> str:
        return self.oauth.authorization_url(self.encode_state(user_id))

    def complete_connection(self, code: str, state: str) -> CredentialRecord:
        """
        Finish the OAuth handshake and run the initial sync.

        A failing initial sync is logged and does not fail the connection.

        Raises:
            AuthenticationError: If the state is forged or the exchange fails
        """
        user_id = self.decode_state(state)
        grant = self.oauth.exchange_code(code)
        if not grant.refresh_token:
            raise AuthenticationError("Provider did not return a refresh token")

        email = self.oauth.fetch_account_email(grant.access_token)
        credential = CredentialRecord(
            user_id=user_id,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            token_expires_at=grant.expires_at,
            remote_calendar_id="primary",
            sync_enabled=True,
            remote_account_email=email or None,
        )
        credential = self.credentials.save(credential)
        logger.info(f"Connected calendar account {email} for user {user_id}")

        try:
            result = self.run_sync(user_id)
            logger.info(f"Initial sync for user {user_id} finished (success={result.success})")
        except CalendarSyncError as e:
            logger.error(f"Initial sync for user {user_id} failed: {e}")
        return credential

    def disconnect(self, user_id: str) -> None:
        """Forget the user's credential and unlink their events."""
        self.credentials.delete(user_id)
        unlinked = self.events.unlink_all(user_id)
        logger.info(f"Disconnected user {user_id}, unlinked {unlinked} events")

    # ------------------------------------------------------------------ #
    # OAuth state                                                          #
    # ------------------------------------------------------------------ #

    def _state_key(self) -> bytes:
        return (self.config.google.client_secret or "").encode()

    def encode_state(self, user_id: str) -> str:
        payload = base64.urlsafe_b64encode(json.dumps({"user_id": user_id}).encode()).decode()
        signature = hmac.new(self._state_key(), payload.encode(), hashlib.sha256).hexdigest()
        return f"{payload}.{signature}"

    def decode_state(self, state: str) -> str:
        payload, _, signature = state.partition(".")
        expected = hmac.new(self._state_key(), payload.encode(), hashlib.sha256).hexdigest()
        if not signature or not hmac.compare_digest(signature, expected):
            raise AuthenticationError("Invalid OAuth state")
        try:
            return json.loads(base64.urlsafe_b64decode(payload.encode()))["user_id"]
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError("Invalid OAuth state") from e


def create_service(config: AppConfig) -> CalendarSyncService:
    """Build a service with a connected store from ``config``."""
    store = LocalStore(config.database_path)
    store.connect()
    return CalendarSyncService(config, store)
