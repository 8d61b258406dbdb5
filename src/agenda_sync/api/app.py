"""FastAPI application exposing the sync engine."""

from typing import Optional

from fastapi import FastAPI

from ..config import AppConfig
from ..service import CalendarSyncService, create_service
from .routes import router


def create_app(
    config: Optional[AppConfig] = None,
    service: Optional[CalendarSyncService] = None,
) -> FastAPI:
    """
    Build the web application.

    Args:
        config: Application configuration (global config by default)
        service: Prebuilt service, e.g. with a fake remote client in tests

    Returns:
        FastAPI application
    """
    if service is None:
        if config is None:
            from ..config import config as default_config

            config = default_config
        service = create_service(config)

    app = FastAPI(title="Agenda Sync", version="0.1.0")
    app.state.service = service
    app.include_router(router)
    return app
