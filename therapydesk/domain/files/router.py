"""Session file router - FastAPI endpoints for session materials"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ...database import get_db
from ...utils.r2_storage import PRESIGNED_URL_EXPIRATION
from .schemas import SessionFileResponse, SessionFileUrlResponse
from .service import SessionFileService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Session Files"])


def get_file_service(db: Session = Depends(get_db)) -> SessionFileService:
    """Dependency injection for SessionFileService"""
    return SessionFileService(db)


@router.get("/sessions/{session_id}/files", response_model=list[SessionFileResponse])
async def list_session_files(
    session_id: int,
    service: SessionFileService = Depends(get_file_service),
):
    return [SessionFileResponse.from_model(f) for f in service.list_files(session_id)]


@router.post("/sessions/{session_id}/files", response_model=SessionFileResponse)
async def upload_session_file(
    session_id: int,
    file: UploadFile = File(...),
    service: SessionFileService = Depends(get_file_service),
):
    """Upload a material (PDF, image, video or audio) for a session"""
    content = await file.read()
    session_file = service.upload_file(
        session_id,
        file.filename or "",
        content,
        file.content_type or "application/octet-stream",
    )
    return SessionFileResponse.from_model(session_file)


@router.get("/files/{file_id}/url", response_model=SessionFileUrlResponse)
async def get_file_url(
    file_id: int,
    service: SessionFileService = Depends(get_file_service),
):
    """Presigned download URL for a private material"""
    return SessionFileUrlResponse(url=service.get_download_url(file_id), expiresIn=PRESIGNED_URL_EXPIRATION)


@router.delete("/files/{file_id}")
async def delete_file(
    file_id: int,
    service: SessionFileService = Depends(get_file_service),
):
    service.delete_file(file_id)
    return {"message": "File deleted"}
