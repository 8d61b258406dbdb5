"""Custom exceptions for Agenda Sync application."""


class CalendarSyncError(Exception):
    """Base exception for calendar sync errors."""


class AuthenticationError(CalendarSyncError):
    """Raised when a usable access token cannot be obtained."""


class AuthExpiredError(AuthenticationError):
    """Raised when the provider rejects the stored refresh token.

    The user has to reconnect the calendar account.
    """


class NotConnectedError(CalendarSyncError):
    """Raised when no credential is on file for the user."""


class SyncDisabledError(CalendarSyncError):
    """Raised when the credential exists but synchronization is switched off."""


class SyncInProgressError(CalendarSyncError):
    """Raised when another sync pass holds the user's lock."""


class CalendarReadError(CalendarSyncError):
    """Raised when reading the remote calendar fails."""


class NotFoundError(CalendarReadError):
    """Raised when a remote entry no longer exists."""


class CalendarWriteError(CalendarSyncError):
    """Raised when writing the remote calendar fails."""


class StoreError(CalendarSyncError):
    """Raised when a local store operation fails."""


class ConfigurationError(CalendarSyncError):
    """Raised when configuration is invalid."""
