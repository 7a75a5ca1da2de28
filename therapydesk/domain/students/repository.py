"""Student repository - Database operations for students"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Student


class StudentRepository:
    """Repository for student database operations"""

    @staticmethod
    def get_students(db: Session) -> list[Student]:
        """Get all students, alphabetically"""
        return db.query(Student).order_by(Student.name.asc(), Student.id.asc()).all()

    @staticmethod
    def get_student_by_id(db: Session, student_id: int) -> Optional[Student]:
        return db.query(Student).filter(Student.id == student_id).first()

    @staticmethod
    def create_student(db: Session, **student_data) -> Student:
        """Create a new student"""
        student = Student(**student_data)
        db.add(student)
        db.commit()
        db.refresh(student)
        return student

    @staticmethod
    def update_student(db: Session, student: Student, **updates) -> Student:
        """Update a student with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(student, key):
                setattr(student, key, value)

        db.commit()
        db.refresh(student)
        return student
