"""FastAPI router for calendar connection and synchronization."""

import logging
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from ..service import CalendarSyncService
from ..utils.exceptions import (
    AuthExpiredError,
    CalendarSyncError,
    NotConnectedError,
    SyncDisabledError,
    SyncInProgressError,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["calendar"])


class SyncResponse(BaseModel):
    success: bool
    imported: int = 0
    exported: int = 0
    conflicts: int = 0
    errors: list[str] = []


class StatusResponse(BaseModel):
    connected: bool
    email: Optional[str] = None
    calendar_id: Optional[str] = None
    last_sync: Optional[datetime] = None
    sync_enabled: Optional[bool] = None


def _service(request: Request) -> CalendarSyncService:
    return request.app.state.service


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user_id


def _failed_sync(status_code: int, message: str) -> JSONResponse:
    body = SyncResponse(success=False, errors=[message])
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.post("/sync", response_model=SyncResponse)
def sync(request: Request, x_user_id: Optional[str] = Header(None)):
    user_id = _require_user(x_user_id)
    try:
        result = _service(request).run_sync(user_id)
    except (NotConnectedError, SyncDisabledError, SyncInProgressError) as e:
        return _failed_sync(409, str(e))
    except AuthExpiredError as e:
        return _failed_sync(401, str(e))
    except CalendarSyncError as e:
        logger.error(f"Sync failed for user {user_id}: {e}")
        return _failed_sync(500, str(e))
    return SyncResponse(**result.to_dict())


@router.get("/status", response_model=StatusResponse)
def status(request: Request, x_user_id: Optional[str] = Header(None)):
    user_id = _require_user(x_user_id)
    return StatusResponse(**_service(request).status(user_id))


@router.get("/connect")
def connect(request: Request, x_user_id: Optional[str] = Header(None)):
    user_id = _require_user(x_user_id)
    return {"auth_url": _service(request).authorization_url(user_id)}


@router.get("/callback")
def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
):
    service = _service(request)
    target = f"{service.config.app_url.rstrip('/')}/calendar"

    if error:
        logger.warning(f"OAuth provider returned an error: {error}")
        return RedirectResponse(f"{target}?error={quote(error)}")
    if not code or not state:
        return RedirectResponse(f"{target}?error=missing_params")

    try:
        service.complete_connection(code, state)
    except CalendarSyncError as e:
        logger.error(f"OAuth callback failed: {e}")
        return RedirectResponse(f"{target}?error={quote(str(e))}")
    return RedirectResponse(f"{target}?connected=true")


@router.post("/disconnect")
def disconnect(request: Request, x_user_id: Optional[str] = Header(None)):
    user_id = _require_user(x_user_id)
    _service(request).disconnect(user_id)
    return {"success": True}
