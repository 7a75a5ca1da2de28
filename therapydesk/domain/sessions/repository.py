"""Therapy session repository - Database operations for sessions"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import TherapySession


class SessionRepository:
    """Repository for therapy session database operations"""

    @staticmethod
    def get_sessions_in_folder(db: Session, folder_id: int) -> list[TherapySession]:
        """Get the sessions of a folder ordered by session number"""
        return (
            db.query(TherapySession)
            .filter(TherapySession.folder_id == folder_id)
            .order_by(TherapySession.session_number.asc())
            .all()
        )

    @staticmethod
    def get_session_by_id(db: Session, session_id: int) -> Optional[TherapySession]:
        return db.query(TherapySession).filter(TherapySession.id == session_id).first()

    @staticmethod
    def count_folder_sessions(db: Session, folder_id: int) -> tuple[int, int]:
        """Return (total, completed) live counts for a folder"""
        total = (
            db.query(func.count(TherapySession.id))
            .filter(TherapySession.folder_id == folder_id)
            .scalar()
        )
        completed = (
            db.query(func.count(TherapySession.id))
            .filter(TherapySession.folder_id == folder_id, TherapySession.status == "completed")
            .scalar()
        )
        return total or 0, completed or 0

    @staticmethod
    def get_session_numbers(db: Session, folder_id: int) -> set[int]:
        rows = (
            db.query(TherapySession.session_number)
            .filter(TherapySession.folder_id == folder_id)
            .all()
        )
        return {row[0] for row in rows}

    @staticmethod
    def get_max_session_number(db: Session, folder_id: int) -> int:
        value = (
            db.query(func.max(TherapySession.session_number))
            .filter(TherapySession.folder_id == folder_id)
            .scalar()
        )
        return value or 0

    @staticmethod
    def get_sessions_without_folder(db: Session, student_id: int) -> list[TherapySession]:
        """Legacy sessions that were created before folders existed"""
        return (
            db.query(TherapySession)
            .filter(TherapySession.student_id == student_id, TherapySession.folder_id.is_(None))
            .order_by(TherapySession.session_number.asc())
            .all()
        )

    @staticmethod
    def get_student_ids_with_unfiled_sessions(db: Session) -> list[int]:
        rows = (
            db.query(TherapySession.student_id)
            .filter(TherapySession.folder_id.is_(None))
            .distinct()
            .order_by(TherapySession.student_id.asc())
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def count_sessions_without_folder(db: Session) -> int:
        return (
            db.query(func.count(TherapySession.id))
            .filter(TherapySession.folder_id.is_(None))
            .scalar()
        )

    @staticmethod
    def create_session(db: Session, **session_data) -> TherapySession:
        """Create a new session"""
        session = TherapySession(**session_data)
        db.add(session)
        db.commit()
        db.refresh(session)
        return session

    @staticmethod
    def update_session(db: Session, session: TherapySession, **updates) -> TherapySession:
        """Update a session with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(session, key):
                setattr(session, key, value)

        db.commit()
        db.refresh(session)
        return session

    @staticmethod
    def delete_session(db: Session, session: TherapySession) -> None:
        db.delete(session)
        db.commit()

    @staticmethod
    def delete_sessions_in_folder(db: Session, folder_id: int) -> int:
        """Delete every session of a folder (with their file records), returns the count"""
        sessions = db.query(TherapySession).filter(TherapySession.folder_id == folder_id).all()
        for session in sessions:
            db.delete(session)
        db.commit()
        return len(sessions)
