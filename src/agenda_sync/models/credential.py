"""OAuth credential data models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CredentialRecord(BaseModel):
    """Per-user OAuth state and sync bookkeeping."""

    user_id: str
    access_token: str
    refresh_token: str
    token_expires_at: datetime
    remote_calendar_id: str = "primary"
    sync_enabled: bool = True
    last_sync_at: Optional[datetime] = None
    remote_account_email: Optional[str] = None


class TokenGrant(BaseModel):
    """Tokens returned by the provider's token endpoint."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime

    model_config = {"frozen": True}
