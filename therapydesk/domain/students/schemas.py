"""Student domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_name
from ..folders.schemas import FolderResponse, FolderStats
from ..sessions.schemas import SessionResponse


class StudentCreate(BaseModel):
    """Schema for creating a new student"""

    name: str
    parentName: Optional[str] = None
    parentEmail: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_student_name(cls, v):
        return validate_name(v, "Student name")

    @field_validator("parentEmail")
    @classmethod
    def validate_parent_email(cls, v):
        return validate_email(v)


class StudentUpdate(BaseModel):
    """Schema for updating an existing student"""

    name: Optional[str] = None
    parentName: Optional[str] = None
    parentEmail: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_student_name(cls, v):
        return validate_name(v, "Student name")

    @field_validator("parentEmail")
    @classmethod
    def validate_parent_email(cls, v):
        return validate_email(v)


class StudentResponse(BaseModel):
    """Schema for student response"""

    id: int
    name: str
    parentName: Optional[str] = None
    parentEmail: Optional[str] = None
    notes: Optional[str] = None
    activeFolderId: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, student) -> "StudentResponse":
        return cls(
            id=student.id,
            name=student.name,
            parentName=student.parent_name,
            parentEmail=student.parent_email,
            notes=student.notes,
            activeFolderId=student.active_folder_id,
            created_at=student.created_at,
        )


class StudentDashboardResponse(BaseModel):
    """Student page: the active folder, its sessions and folder rollup"""

    student: StudentResponse
    activeFolder: Optional[FolderResponse] = None
    sessions: list[SessionResponse]
    stats: FolderStats
