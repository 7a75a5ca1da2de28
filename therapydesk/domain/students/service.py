"""Student service - Business logic for students and their dashboard"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Student
from ...utils.sanitization import sanitize_string
from ..folders.service import FolderService
from ..sessions.service import SessionService
from .repository import StudentRepository
from .schemas import StudentCreate, StudentUpdate

logger = logging.getLogger(__name__)


class StudentService:
    """Service layer for student business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = StudentRepository()

    def get_students(self) -> list[Student]:
        return self.repo.get_students(self.db)

    def get_student(self, student_id: int) -> Student:
        student = self.repo.get_student_by_id(self.db, student_id)
        if not student:
            raise HTTPException(status_code=404, detail="Student not found")
        return student

    def create_student(self, data: StudentCreate) -> Student:
        student = self.repo.create_student(
            self.db,
            name=sanitize_string(data.name),
            parent_name=sanitize_string(data.parentName) if data.parentName else None,
            parent_email=data.parentEmail,
            notes=sanitize_string(data.notes) if data.notes else None,
        )
        logger.info(f"✅ Created student {student.id}")
        return student

    def update_student(self, student_id: int, data: StudentUpdate) -> Student:
        student = self.get_student(student_id)
        student = self.repo.update_student(
            self.db,
            student,
            name=sanitize_string(data.name) if data.name else None,
            parent_name=sanitize_string(data.parentName) if data.parentName else None,
            parent_email=data.parentEmail,
            notes=sanitize_string(data.notes) if data.notes is not None else None,
        )
        logger.info(f"✅ Updated student {student_id}")
        return student

    def get_dashboard(self, student_id: int) -> dict:
        """
        Everything the student page needs in one call: the active folder,
        its sessions with display numbers and the rollup over all folders.
        """
        student = self.get_student(student_id)
        folder_service = FolderService(self.db)

        stats = folder_service.get_student_stats(student_id)
        active_folder = student.active_folder
        ranked = []
        if active_folder is not None:
            ranked = SessionService(self.db).list_sessions_for_display(active_folder.id)

        return {
            "student": student,
            "active_folder": active_folder,
            "sessions": ranked,
            "stats": stats,
        }
