"""Therapy session schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

SessionStatus = Literal["locked", "available", "completed", "cancelled"]


def _validate_duration(v):
    if v is not None and (v < 15 or v > 180):
        raise ValueError("Duration must be between 15 and 180 minutes")
    return v


class SessionCreate(BaseModel):
    """Schema for adding a single session to a folder"""

    title: str
    description: Optional[str] = ""
    date: datetime
    duration: int = 45
    status: SessionStatus = "locked"
    isPaid: bool = False
    sessionNumber: Optional[int] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        return _validate_duration(v)

    @field_validator("sessionNumber")
    @classmethod
    def validate_session_number(cls, v):
        if v is not None and v < 1:
            raise ValueError("Session number must be a positive integer")
        return v


class SessionUpdate(BaseModel):
    """Schema for editing a session"""

    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    duration: Optional[int] = None
    status: Optional[SessionStatus] = None
    isPaid: Optional[bool] = None
    therapistNotes: Optional[str] = None

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        return _validate_duration(v)


class SessionResponse(BaseModel):
    """Schema for session response"""

    id: int
    studentId: int
    folderId: Optional[int] = None
    sessionNumber: int
    displayNumber: Optional[int] = None
    title: str
    description: Optional[str] = None
    date: datetime
    duration: int
    status: str
    isPaid: bool
    therapistNotes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, session, display_number: Optional[int] = None) -> "SessionResponse":
        return cls(
            id=session.id,
            studentId=session.student_id,
            folderId=session.folder_id,
            sessionNumber=session.session_number,
            displayNumber=display_number,
            title=session.title,
            description=session.description,
            date=session.date,
            duration=session.duration,
            status=session.status,
            isPaid=session.is_paid,
            therapistNotes=session.therapist_notes,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]
    totalSessions: int
    folderId: int
