"""Therapy session router - FastAPI endpoints for individual sessions"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ..folders.service import FolderService
from .schemas import SessionResponse, SessionUpdate
from .service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def get_session_service(db: Session = Depends(get_db)) -> SessionService:
    """Dependency injection for SessionService"""
    return SessionService(db)


def get_folder_service(db: Session = Depends(get_db)) -> FolderService:
    return FolderService(db)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: int,
    service: SessionService = Depends(get_session_service),
):
    return SessionResponse.from_model(service.get_session(session_id))


@router.patch("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: int,
    data: SessionUpdate,
    service: SessionService = Depends(get_session_service),
    folder_service: FolderService = Depends(get_folder_service),
):
    """Update status, notes or payment of a session, then refresh its folder stats"""
    session = service.update_session(session_id, data)
    if session.folder_id:
        folder_service.reconcile_folder_stats(session.folder_id)
    return SessionResponse.from_model(session)


@router.delete("/{session_id}")
async def delete_session(
    session_id: int,
    service: SessionService = Depends(get_session_service),
    folder_service: FolderService = Depends(get_folder_service),
):
    """Delete a session; remaining numbers are not renumbered"""
    folder_id = service.delete_session(session_id)
    if folder_id:
        folder_service.reconcile_folder_stats(folder_id)
    return {"message": "Session deleted", "folderId": folder_id}
