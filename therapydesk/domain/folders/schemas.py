"""Session folder domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_day_of_week, validate_name, validate_time_of_day

FolderStatus = Literal["active", "completed", "paused"]

MIN_WEEKS, MAX_WEEKS = 1, 52
MIN_SESSIONS_PER_WEEK, MAX_SESSIONS_PER_WEEK = 1, 7
MIN_DURATION, MAX_DURATION = 15, 180


class SessionTemplate(BaseModel):
    """One weekly slot of a therapy program"""

    dayOfWeek: str = "monday"
    time: str = "16:00"
    duration: int = 45  # minutes

    @field_validator("dayOfWeek")
    @classmethod
    def validate_day(cls, v):
        return validate_day_of_week(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_of_day(v)

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        if v < MIN_DURATION or v > MAX_DURATION:
            raise ValueError(f"Duration must be between {MIN_DURATION} and {MAX_DURATION} minutes")
        return v


class FolderCreate(BaseModel):
    """Schema for creating an empty folder"""

    studentId: int
    name: str
    description: Optional[str] = None
    setActive: bool = False

    @field_validator("name")
    @classmethod
    def validate_folder_name(cls, v):
        return validate_name(v, "Folder name")


class FolderWithSessionsCreate(FolderCreate):
    """Schema for creating a folder together with its weekly sessions"""

    totalWeeks: int
    sessionsPerWeek: int
    sessionTemplates: list[SessionTemplate]
    firstSessionStatus: Literal["available", "locked"] = "available"
    alignToWeekday: bool = False
    startDate: Optional[date] = None

    @field_validator("totalWeeks")
    @classmethod
    def validate_total_weeks(cls, v):
        if v < MIN_WEEKS or v > MAX_WEEKS:
            raise ValueError(f"Total weeks must be between {MIN_WEEKS} and {MAX_WEEKS}")
        return v

    @field_validator("sessionsPerWeek")
    @classmethod
    def validate_sessions_per_week(cls, v):
        if v < MIN_SESSIONS_PER_WEEK or v > MAX_SESSIONS_PER_WEEK:
            raise ValueError(
                f"Sessions per week must be between {MIN_SESSIONS_PER_WEEK} and {MAX_SESSIONS_PER_WEEK}"
            )
        return v

    @field_validator("sessionTemplates")
    @classmethod
    def validate_templates(cls, v):
        if not v:
            raise ValueError("At least one session template is required")
        return v


class FolderUpdate(BaseModel):
    """Schema for updating folder metadata"""

    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[FolderStatus] = None
    endDate: Optional[datetime] = None
    setActive: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_folder_name(cls, v):
        return validate_name(v, "Folder name")


class FolderResponse(BaseModel):
    """Schema for folder response"""

    id: int
    studentId: int
    name: str
    description: Optional[str] = None
    isActive: bool
    totalSessions: int
    completedSessions: int
    totalWeeks: Optional[int] = None
    sessionsPerWeek: Optional[int] = None
    status: str
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, folder) -> "FolderResponse":
        return cls(
            id=folder.id,
            studentId=folder.student_id,
            name=folder.name,
            description=folder.description,
            isActive=folder.is_active,
            totalSessions=folder.total_sessions,
            completedSessions=folder.completed_sessions,
            totalWeeks=folder.total_weeks,
            sessionsPerWeek=folder.sessions_per_week,
            status=folder.status,
            startDate=folder.start_date,
            endDate=folder.end_date,
            created_at=folder.created_at,
            updated_at=folder.updated_at,
        )


class FolderStats(BaseModel):
    """Rollup of a student's folders"""

    totalFolders: int
    activeFolders: int
    completedFolders: int
    totalSessions: int
    completedSessions: int


class FolderListResponse(BaseModel):
    folders: list[FolderResponse]
    stats: FolderStats


class BatchFailure(BaseModel):
    sessionNumber: int
    error: str


class FolderCreationResponse(BaseModel):
    """Result of folder + sessions creation, including partial failures"""

    folder: FolderResponse
    sessionsCreated: int
    sessionsFailed: int
    createdSessionIds: list[int]
    failures: list[BatchFailure]


class ActiveFolderReportResponse(BaseModel):
    studentsChecked: int
    studentsWithConflicts: int
    foldersDeactivated: int
    studentsWithoutActive: int
