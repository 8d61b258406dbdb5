"""Abstract base class for OAuth providers."""

from abc import ABC, abstractmethod

from ..models.credential import TokenGrant


class OAuthProvider(ABC):
    """Abstract base class for OAuth providers."""

    @abstractmethod
    def authorization_url(self, state: str) -> str:
        """
        Build the consent URL the user is redirected to.

        Args:
            state: Opaque value echoed back to the callback

        Returns:
            Authorization URL
        """

    @abstractmethod
    def exchange_code(self, code: str) -> TokenGrant:
        """
        Exchange an authorization code for tokens.

        Raises:
            AuthenticationError: If the exchange fails
        """

    @abstractmethod
    def refresh(self, refresh_token: str) -> TokenGrant:
        """
        Obtain a new access token from a refresh token.

        Raises:
            AuthExpiredError: If the refresh token was rejected
            AuthenticationError: If the exchange failed for another reason
        """

    @abstractmethod
    def fetch_account_email(self, access_token: str) -> str:
        """Return the email address of the account the token belongs to."""
