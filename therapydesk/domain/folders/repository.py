"""Session folder repository - Database operations for folders"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import SessionFolder, Student


class FolderRepository:
    """Repository for session folder database operations"""

    @staticmethod
    def get_folders_for_student(db: Session, student_id: int) -> list[SessionFolder]:
        """Get all folders for a student, newest first"""
        return (
            db.query(SessionFolder)
            .filter(SessionFolder.student_id == student_id)
            .order_by(SessionFolder.created_at.desc(), SessionFolder.id.desc())
            .all()
        )

    @staticmethod
    def get_folder_by_id(db: Session, folder_id: int) -> Optional[SessionFolder]:
        return db.query(SessionFolder).filter(SessionFolder.id == folder_id).first()

    @staticmethod
    def get_all_folders(db: Session, student_id: Optional[int] = None) -> list[SessionFolder]:
        """Get every folder, optionally scoped to one student"""
        query = db.query(SessionFolder)
        if student_id is not None:
            query = query.filter(SessionFolder.student_id == student_id)
        return query.order_by(SessionFolder.student_id.asc(), SessionFolder.id.asc()).all()

    @staticmethod
    def count_folders_for_student(db: Session, student_id: int) -> int:
        return (
            db.query(func.count(SessionFolder.id))
            .filter(SessionFolder.student_id == student_id)
            .scalar()
        )

    @staticmethod
    def get_oldest_folder_for_student(db: Session, student_id: int) -> Optional[SessionFolder]:
        return (
            db.query(SessionFolder)
            .filter(SessionFolder.student_id == student_id)
            .order_by(SessionFolder.created_at.asc(), SessionFolder.id.asc())
            .first()
        )

    @staticmethod
    def create_folder(db: Session, **folder_data) -> SessionFolder:
        """Create a new folder"""
        folder = SessionFolder(**folder_data)
        db.add(folder)
        db.commit()
        db.refresh(folder)
        return folder

    @staticmethod
    def update_folder(db: Session, folder: SessionFolder, **updates) -> SessionFolder:
        """Update a folder with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(folder, key):
                setattr(folder, key, value)

        db.commit()
        db.refresh(folder)
        return folder

    @staticmethod
    def update_folder_stats(
        db: Session, folder: SessionFolder, total_sessions: int, completed_sessions: int
    ) -> SessionFolder:
        """Write recomputed counters; always bumps updated_at"""
        folder.total_sessions = total_sessions
        folder.completed_sessions = completed_sessions
        folder.updated_at = func.now()
        db.commit()
        db.refresh(folder)
        return folder

    @staticmethod
    def set_active_folder(db: Session, student: Student, folder: Optional[SessionFolder]) -> None:
        """
        Make `folder` the student's only active folder in a single commit.
        Passing None deactivates every folder of the student.
        """
        active_folders = (
            db.query(SessionFolder)
            .filter(SessionFolder.student_id == student.id, SessionFolder.is_active.is_(True))
            .all()
        )
        for other in active_folders:
            if folder is None or other.id != folder.id:
                other.is_active = False
                other.updated_at = func.now()

        if folder is not None:
            folder.is_active = True
            folder.updated_at = func.now()
            student.active_folder_id = folder.id
        else:
            student.active_folder_id = None

        db.commit()

    @staticmethod
    def deactivate_folders(db: Session, folders: list[SessionFolder]) -> None:
        for folder in folders:
            folder.is_active = False
            folder.updated_at = func.now()
        db.commit()

    @staticmethod
    def delete_folder(db: Session, folder: SessionFolder) -> None:
        """Delete a folder, releasing the owner's active reference first"""
        student = folder.student
        if student is not None and student.active_folder_id == folder.id:
            student.active_folder_id = None
            db.flush()
        db.delete(folder)
        db.commit()
