"""Access token lifecycle for stored credentials."""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..models.credential import CredentialRecord
from ..storage.credential_store import CredentialStore
from ..utils.date_utils import ensure_utc, utcnow
from .base import OAuthProvider

logger = logging.getLogger(__name__)


class TokenLifecycleManager:
    """Hands out currently-valid access tokens, refreshing them when close to expiry."""

    def __init__(
        self,
        provider: OAuthProvider,
        credentials: CredentialStore,
        refresh_margin: timedelta = timedelta(minutes=5),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize token lifecycle manager.

        Args:
            provider: OAuth provider performing refresh exchanges
            credentials: Store the refreshed token is persisted to
            refresh_margin: Refresh when the token expires within this margin
            clock: Returns the current UTC time
        """
        self.provider = provider
        self.credentials = credentials
        self.refresh_margin = refresh_margin
        self.clock = clock or utcnow

    def needs_refresh(self, credential: CredentialRecord) -> bool:
        remaining = ensure_utc(credential.token_expires_at) - self.clock()
        return remaining < self.refresh_margin

    def ensure_valid_token(self, credential: CredentialRecord) -> str:
        """
        Return a usable access token for ``credential``.

        The refreshed token is persisted before it is returned, so any remote
        call made with it finds the store already up to date.

        Raises:
            AuthExpiredError: If the refresh token was rejected
            AuthenticationError: If the refresh failed for another reason
        """
        if not self.needs_refresh(credential):
            return credential.access_token

        logger.info(f"Access token for user {credential.user_id} expires soon, refreshing")
        grant = self.provider.refresh(credential.refresh_token)
        self.credentials.update_tokens(credential.user_id, grant.access_token, grant.expires_at)

        credential.access_token = grant.access_token
        credential.token_expires_at = grant.expires_at
        return grant.access_token
