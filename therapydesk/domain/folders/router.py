"""Session folder router - FastAPI endpoints for folders and their sessions"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ..sessions.schemas import SessionCreate, SessionListResponse, SessionResponse, SessionStatus
from ..sessions.service import SessionService
from .generation import BatchResult
from .schemas import (
    BatchFailure,
    FolderCreate,
    FolderCreationResponse,
    FolderResponse,
    FolderUpdate,
    FolderWithSessionsCreate,
)
from .service import FolderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/folders", tags=["Session Folders"])


def get_folder_service(db: Session = Depends(get_db)) -> FolderService:
    """Dependency injection for FolderService"""
    return FolderService(db)


def get_session_service(db: Session = Depends(get_db)) -> SessionService:
    """Dependency injection for SessionService"""
    return SessionService(db)


def _creation_response(folder, result: BatchResult) -> FolderCreationResponse:
    return FolderCreationResponse(
        folder=FolderResponse.from_model(folder),
        sessionsCreated=result.created_count,
        sessionsFailed=result.failed_count,
        createdSessionIds=result.succeeded,
        failures=[BatchFailure(sessionNumber=draft.session_number, error=error) for draft, error in result.failed],
    )


# ============================================================================
# FOLDER CRUD
# ============================================================================


@router.post("", response_model=FolderResponse)
async def create_folder(
    data: FolderCreate,
    service: FolderService = Depends(get_folder_service),
):
    """Create an empty folder (a student's first folder becomes active)"""
    return FolderResponse.from_model(service.create_folder(data))


# Plain def: the throttled batch sleeps between writes and must run in the threadpool
@router.post("/with-sessions", response_model=FolderCreationResponse)
def create_folder_with_sessions(
    data: FolderWithSessionsCreate,
    service: FolderService = Depends(get_folder_service),
):
    """Create a folder and its weekly sessions, reporting created and failed counts"""
    folder, result = service.create_folder_with_sessions(data)
    return _creation_response(folder, result)


@router.get("/{folder_id}", response_model=FolderResponse)
async def get_folder(
    folder_id: int,
    service: FolderService = Depends(get_folder_service),
):
    return FolderResponse.from_model(service.get_folder(folder_id))


@router.patch("/{folder_id}", response_model=FolderResponse)
async def update_folder(
    folder_id: int,
    data: FolderUpdate,
    service: FolderService = Depends(get_folder_service),
):
    """Update folder metadata, optionally making it the active folder"""
    return FolderResponse.from_model(service.update_folder(folder_id, data))


@router.delete("/{folder_id}")
async def delete_folder(
    folder_id: int,
    cascade: bool = Query(False, description="Also delete the folder's sessions"),
    service: FolderService = Depends(get_folder_service),
):
    return service.delete_folder(folder_id, cascade)


@router.post("/{folder_id}/set-active", response_model=FolderResponse)
async def set_active_folder(
    folder_id: int,
    service: FolderService = Depends(get_folder_service),
):
    return FolderResponse.from_model(service.set_active_folder(folder_id))


@router.post("/{folder_id}/reconcile", response_model=FolderResponse)
async def reconcile_folder(
    folder_id: int,
    service: FolderService = Depends(get_folder_service),
):
    """Recompute total/completed session counts from the folder's sessions"""
    return FolderResponse.from_model(service.reconcile_folder_stats(folder_id))


# ============================================================================
# SESSIONS IN FOLDER
# ============================================================================


@router.get("/{folder_id}/sessions", response_model=SessionListResponse)
async def get_folder_sessions(
    folder_id: int,
    status: Optional[SessionStatus] = Query(None, description="Filter by session status"),
    order_direction: Literal["asc", "desc"] = Query("asc", alias="orderDirection"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: SessionService = Depends(get_session_service),
):
    """List a folder's sessions with display numbers"""
    ranked = service.list_sessions_for_display(
        folder_id, descending=order_direction == "desc", status=status, limit=limit
    )
    return SessionListResponse(
        sessions=[SessionResponse.from_model(s, display_number=rank) for s, rank in ranked],
        totalSessions=len(ranked),
        folderId=folder_id,
    )


@router.post("/{folder_id}/sessions", response_model=SessionResponse)
def create_folder_session(
    folder_id: int,
    data: SessionCreate,
    service: SessionService = Depends(get_session_service),
    folder_service: FolderService = Depends(get_folder_service),
):
    """Add a single session to a folder and refresh the folder stats"""
    session = service.create_session_in_folder(folder_id, data)
    folder_service.reconcile_folder_stats(folder_id)
    return SessionResponse.from_model(session)


@router.post("/{folder_id}/sessions/fill-missing", response_model=FolderCreationResponse)
def fill_missing_sessions(
    folder_id: int,
    service: FolderService = Depends(get_folder_service),
):
    """Create the scheduled sessions a partially failed batch left out"""
    folder, result = service.fill_missing_sessions(folder_id)
    return _creation_response(folder, result)
