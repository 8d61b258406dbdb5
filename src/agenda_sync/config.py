"""Configuration management for Agenda Sync application."""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class GoogleConfig(BaseSettings):
    """Google OAuth client and Calendar API configuration."""

    client_id: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_ID")
    client_secret: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_SECRET")
    redirect_uri: Optional[str] = Field(None, validation_alias="GOOGLE_REDIRECT_URI")

    auth_url: str = Field(
        default="https://accounts.google.com/o/oauth2/v2/auth",
        validation_alias="GOOGLE_AUTH_URL",
    )
    token_url: str = Field(
        default="https://oauth2.googleapis.com/token",
        validation_alias="GOOGLE_TOKEN_URL",
    )
    userinfo_url: str = Field(
        default="https://www.googleapis.com/oauth2/v2/userinfo",
        validation_alias="GOOGLE_USERINFO_URL",
    )
    api_base: str = Field(
        default="https://www.googleapis.com/calendar/v3",
        validation_alias="GOOGLE_API_BASE",
    )
    # Scopes are hardcoded - no need to configure
    scopes: list[str] = Field(
        default=[
            "https://www.googleapis.com/auth/calendar",
            "https://www.googleapis.com/auth/userinfo.email",
        ]
    )
    request_timeout: float = Field(default=30.0, validation_alias="GOOGLE_REQUEST_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        env_parse_none_str="",  # Treat empty string as None
    )


class AppConfig(BaseSettings):
    """Application configuration."""

    google: GoogleConfig = Field(default_factory=GoogleConfig)

    # Local store
    database_path: Path = Field(
        default=Path(".agenda_sync.db"), validation_alias="DATABASE_PATH"
    )

    # Browser-facing base URL the OAuth callback redirects to
    app_url: str = Field(default="http://localhost:8000", validation_alias="APP_URL")

    # Local event times are naive wall-clock times in this zone
    reference_timezone: str = Field(
        default="Europe/Paris", validation_alias="REFERENCE_TIMEZONE"
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, validation_alias="LOG_FILE")

    # Sync settings
    sync_lookback_days: int = Field(default=30, validation_alias="SYNC_LOOKBACK_DAYS")
    token_refresh_margin_minutes: int = Field(
        default=5, validation_alias="TOKEN_REFRESH_MARGIN_MINUTES"
    )
    dedup_tolerance_seconds: int = Field(
        default=60, validation_alias="DEDUP_TOLERANCE_SECONDS"
    )
    sync_page_size: int = Field(default=250, validation_alias="SYNC_PAGE_SIZE")
    sync_lock_timeout_seconds: int = Field(
        default=600, validation_alias="SYNC_LOCK_TIMEOUT_SECONDS"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        env_parse_none_str="",
    )


# Global config instance (CLI and default web app only)
config = AppConfig()
