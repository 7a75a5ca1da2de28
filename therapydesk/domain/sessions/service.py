"""Therapy session service - Business logic for sessions inside folders"""

import logging
import time
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ...config import SESSION_CREATE_BACKOFF_MS, SESSION_CREATE_MAX_ATTEMPTS
from ...models import SessionFolder, TherapySession
from ...utils.r2_storage import delete_file_from_r2
from ...utils.sanitization import sanitize_string
from ..folders.repository import FolderRepository
from .repository import SessionRepository
from .schemas import SessionCreate, SessionUpdate

logger = logging.getLogger(__name__)


class SessionService:
    """Service layer for therapy session business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SessionRepository()
        self.folder_repo = FolderRepository()

    def _get_folder(self, folder_id: int) -> SessionFolder:
        folder = self.folder_repo.get_folder_by_id(self.db, folder_id)
        if not folder:
            raise HTTPException(status_code=404, detail="Session folder not found")
        return folder

    def get_session(self, session_id: int) -> TherapySession:
        session = self.repo.get_session_by_id(self.db, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    def list_sessions_for_display(
        self,
        folder_id: int,
        descending: bool = False,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[tuple[TherapySession, int]]:
        """
        Sessions of a folder paired with their display number.

        The display number is the 1-based rank by session_number, so the list
        reads 1, 2, 3... even when deletions left gaps in the stored numbers.
        """
        self._get_folder(folder_id)
        ordered = self.repo.get_sessions_in_folder(self.db, folder_id)
        ranked = [(session, rank) for rank, session in enumerate(ordered, start=1)]

        if status:
            ranked = [(s, rank) for s, rank in ranked if s.status == status]
        if descending:
            ranked.reverse()
        if limit:
            ranked = ranked[:limit]
        return ranked

    def create_session_in_folder(self, folder_id: int, data: SessionCreate) -> TherapySession:
        """
        Add one session to a folder. The number is the explicit value or the
        folder's highest number + 1. Caller reconciles the folder stats.
        """
        folder = self._get_folder(folder_id)
        session_number = data.sessionNumber or self.repo.get_max_session_number(self.db, folder_id) + 1

        logger.info(f"📊 Creating session #{session_number} in folder '{folder.name}'")

        attempts = max(1, SESSION_CREATE_MAX_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            try:
                session = self.repo.create_session(
                    self.db,
                    student_id=folder.student_id,
                    folder_id=folder.id,
                    session_number=session_number,
                    title=sanitize_string(data.title),
                    description=sanitize_string(data.description or ""),
                    date=data.date,
                    duration=data.duration,
                    status=data.status,
                    is_paid=data.isPaid,
                )
                logger.info(f"✅ Session #{session_number} created on attempt {attempt}")
                return session
            except IntegrityError:
                self.db.rollback()
                logger.warning(f"⚠️ Session #{session_number} already exists in folder {folder_id}")
                raise HTTPException(
                    status_code=409,
                    detail=f"Session number {session_number} already exists in this folder",
                )
            except OperationalError as e:
                self.db.rollback()
                logger.error(f"❌ Attempt {attempt} failed for session #{session_number}: {e}")
                if attempt >= attempts:
                    raise HTTPException(status_code=503, detail="Failed to create session, please retry")
                time.sleep(SESSION_CREATE_BACKOFF_MS * (2 ** (attempt - 1)) / 1000)

    def update_session(self, session_id: int, data: SessionUpdate) -> TherapySession:
        """Update a session. Caller reconciles the folder stats."""
        session = self.get_session(session_id)

        updates = {}
        if data.title is not None:
            updates["title"] = sanitize_string(data.title.strip())
        if data.description is not None:
            updates["description"] = sanitize_string(data.description)
        if data.date is not None:
            updates["date"] = data.date
        if data.duration is not None:
            updates["duration"] = data.duration
        if data.status is not None:
            updates["status"] = data.status
        if data.isPaid is not None:
            updates["is_paid"] = data.isPaid
        if data.therapistNotes is not None:
            updates["therapist_notes"] = sanitize_string(data.therapistNotes)

        session = self.repo.update_session(self.db, session, **updates)
        logger.info(f"✅ Updated session {session_id} (status={session.status}, paid={session.is_paid})")
        return session

    def delete_session(self, session_id: int) -> Optional[int]:
        """
        Delete a session and its materials.

        Remaining sessions keep their numbers and folder stats are left as they
        are; returns the folder id so the caller can reconcile.
        """
        session = self.get_session(session_id)
        folder_id = session.folder_id

        for session_file in list(session.files):
            if not delete_file_from_r2(session_file.r2_key):
                logger.warning(f"⚠️ Could not delete R2 object {session_file.r2_key}, removing record anyway")

        self.repo.delete_session(self.db, session)
        logger.info(f"🗑️ Deleted session {session_id} from folder {folder_id}")
        return folder_id
