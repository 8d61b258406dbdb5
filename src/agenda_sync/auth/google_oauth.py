"""OAuth 2.0 client for Google accounts."""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional
from urllib.parse import urlencode

import requests

from ..config import GoogleConfig
from ..models.credential import TokenGrant
from ..utils.date_utils import utcnow
from ..utils.exceptions import AuthenticationError, AuthExpiredError, ConfigurationError
from .base import OAuthProvider

logger = logging.getLogger(__name__)

# Lifetime assumed when the token endpoint omits expires_in
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)


class GoogleOAuthClient(OAuthProvider):
    """Authorization-code and refresh-token flows against Google's token endpoint."""

    def __init__(
        self,
        config: GoogleConfig,
        session: Optional[requests.Session] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize Google OAuth client.

        Args:
            config: Google configuration
            session: HTTP session (a new one by default)
            clock: Returns the current UTC time

        Raises:
            ConfigurationError: If client id or secret is missing
        """
        if not config.client_id or not config.client_secret:
            raise ConfigurationError("GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required")

        self.config = config
        self.session = session or requests.Session()
        self.clock = clock or utcnow

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.config.scopes),
            # offline + consent makes Google issue a refresh token every time
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{self.config.auth_url}?{urlencode(params)}"

    def exchange_code(self, code: str) -> TokenGrant:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "redirect_uri": self.config.redirect_uri,
        }
        try:
            resp = self.session.post(
                self.config.token_url, data=data, timeout=self.config.request_timeout
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise AuthenticationError(f"Authorization code exchange failed: {e}") from e

        logger.info("Authorization code exchanged for tokens")
        return self._grant_from_response(resp.json())

    def refresh(self, refresh_token: str) -> TokenGrant:
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        }
        try:
            resp = self.session.post(
                self.config.token_url, data=data, timeout=self.config.request_timeout
            )
        except requests.RequestException as e:
            raise AuthenticationError(f"Token refresh failed: {e}") from e

        if resp.status_code in (400, 401):
            error = _error_code(resp)
            raise AuthExpiredError(
                f"Refresh token rejected ({error}); reconnect the calendar account"
            )
        try:
            resp.raise_for_status()
        except requests.RequestException as e:
            raise AuthenticationError(f"Token refresh failed: {e}") from e

        logger.debug("Access token refreshed")
        return self._grant_from_response(resp.json())

    def fetch_account_email(self, access_token: str) -> str:
        try:
            resp = self.session.get(
                self.config.userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.config.request_timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise AuthenticationError(f"Failed to read account info: {e}") from e
        return resp.json().get("email", "")

    def _grant_from_response(self, payload: dict) -> TokenGrant:
        if "access_token" not in payload:
            raise AuthenticationError(
                f"Token endpoint returned no access token: {payload.get('error_description', payload)}"
            )
        expires_in = payload.get("expires_in")
        lifetime = timedelta(seconds=int(expires_in)) if expires_in else DEFAULT_TOKEN_LIFETIME
        return TokenGrant(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_at=self.clock() + lifetime,
        )


def _error_code(resp: requests.Response) -> str:
    try:
        return resp.json().get("error", "unknown_error")
    except ValueError:
        return f"HTTP {resp.status_code}"
