"""Session file repository - Database operations for session materials"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import SessionFile


class SessionFileRepository:
    """Repository for session file database operations"""

    @staticmethod
    def get_files_for_session(db: Session, session_id: int) -> list[SessionFile]:
        return (
            db.query(SessionFile)
            .filter(SessionFile.session_id == session_id)
            .order_by(SessionFile.created_at.asc(), SessionFile.id.asc())
            .all()
        )

    @staticmethod
    def get_file_by_id(db: Session, file_id: int) -> Optional[SessionFile]:
        return db.query(SessionFile).filter(SessionFile.id == file_id).first()

    @staticmethod
    def get_file_by_r2_key(db: Session, r2_key: str) -> Optional[SessionFile]:
        return db.query(SessionFile).filter(SessionFile.r2_key == r2_key).first()

    @staticmethod
    def create_file(db: Session, **file_data) -> SessionFile:
        session_file = SessionFile(**file_data)
        db.add(session_file)
        db.commit()
        db.refresh(session_file)
        return session_file

    @staticmethod
    def delete_file(db: Session, session_file: SessionFile) -> None:
        db.delete(session_file)
        db.commit()
