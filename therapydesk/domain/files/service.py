"""Session file service - Upload, list and remove session materials in R2"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import SessionFile
from ...utils.r2_storage import (
    PRESIGNED_URL_EXPIRATION,
    delete_file_from_r2,
    generate_presigned_url,
    generate_session_file_key,
    upload_file_to_r2,
    validate_session_file,
)
from ..sessions.repository import SessionRepository
from .repository import SessionFileRepository

logger = logging.getLogger(__name__)


class SessionFileService:
    """Service layer for session materials"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SessionFileRepository()
        self.session_repo = SessionRepository()

    def _check_session(self, session_id: int) -> None:
        if not self.session_repo.get_session_by_id(self.db, session_id):
            raise HTTPException(status_code=404, detail="Session not found")

    def get_file(self, file_id: int) -> SessionFile:
        session_file = self.repo.get_file_by_id(self.db, file_id)
        if not session_file:
            raise HTTPException(status_code=404, detail="File not found")
        return session_file

    def list_files(self, session_id: int) -> list[SessionFile]:
        self._check_session(session_id)
        return self.repo.get_files_for_session(self.db, session_id)

    def upload_file(self, session_id: int, file_name: str, content: bytes, mime_type: str) -> SessionFile:
        """Validate, store in R2, then record the material against the session"""
        self._check_session(session_id)

        is_valid, error = validate_session_file(file_name, len(content), mime_type)
        if not is_valid:
            logger.warning(f"⚠️ Rejected upload for session {session_id}: {error}")
            raise HTTPException(status_code=400, detail=error)

        r2_key = generate_session_file_key(session_id, file_name)
        if not upload_file_to_r2(
            content, r2_key, mime_type, metadata={"session_id": str(session_id), "original_name": file_name}
        ):
            raise HTTPException(status_code=502, detail="Failed to store file")

        session_file = self.repo.create_file(
            self.db,
            session_id=session_id,
            file_name=file_name,
            mime_type=mime_type,
            size_bytes=len(content),
            r2_key=r2_key,
        )
        logger.info(f"📎 Stored {file_name} for session {session_id} as {r2_key}")
        return session_file

    def get_download_url(self, file_id: int) -> str:
        session_file = self.get_file(file_id)
        url = generate_presigned_url(session_file.r2_key, PRESIGNED_URL_EXPIRATION)
        if not url:
            raise HTTPException(status_code=502, detail="Failed to generate download URL")
        return url

    def delete_file(self, file_id: int) -> None:
        session_file = self.get_file(file_id)
        if not delete_file_from_r2(session_file.r2_key):
            logger.warning(f"⚠️ Could not delete R2 object {session_file.r2_key}, removing record anyway")
        self.repo.delete_file(self.db, session_file)
        logger.info(f"🗑️ Deleted file {file_id}")
