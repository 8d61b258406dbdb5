"""
In-memory fake OAuth provider for testing.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional
from urllib.parse import urlencode

from agenda_sync.auth.base import OAuthProvider
from agenda_sync.models.credential import TokenGrant
from agenda_sync.utils.exceptions import AuthenticationError, AuthExpiredError


class FakeOAuthProvider(OAuthProvider):
    """Issues predictable tokens and records every exchange."""

    def __init__(self, clock: Callable[[], datetime], lifetime: timedelta = timedelta(hours=1)):
        self.clock = clock
        self.lifetime = lifetime
        self.refresh_calls: list[str] = []
        self.exchanged_codes: list[str] = []
        self.revoked = False
        self.issue_refresh_token = True
        self.email = "someone@example.com"

    def authorization_url(self, state: str) -> str:
        return "https://accounts.example.com/auth?" + urlencode({"state": state})

    def exchange_code(self, code: str) -> TokenGrant:
        if code == "bad-code":
            raise AuthenticationError("Authorization code exchange failed: invalid_grant")
        self.exchanged_codes.append(code)
        return TokenGrant(
            access_token=f"access-{code}",
            refresh_token="refresh-1" if self.issue_refresh_token else None,
            expires_at=self.clock() + self.lifetime,
        )

    def refresh(self, refresh_token: str) -> TokenGrant:
        self.refresh_calls.append(refresh_token)
        if self.revoked:
            raise AuthExpiredError("Refresh token rejected (invalid_grant); reconnect the calendar account")
        return TokenGrant(
            access_token=f"access-{len(self.refresh_calls) + 1}",
            expires_at=self.clock() + self.lifetime,
        )

    def fetch_account_email(self, access_token: str) -> Optional[str]:
        return self.email
