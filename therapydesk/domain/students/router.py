"""Student router - FastAPI endpoints for students and their folders"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ..folders.schemas import ActiveFolderReportResponse, FolderListResponse, FolderResponse, FolderStats
from ..folders.service import FolderService
from ..sessions.schemas import SessionResponse
from .schemas import StudentCreate, StudentDashboardResponse, StudentResponse, StudentUpdate
from .service import StudentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])


def get_student_service(db: Session = Depends(get_db)) -> StudentService:
    """Dependency injection for StudentService"""
    return StudentService(db)


def get_folder_service(db: Session = Depends(get_db)) -> FolderService:
    return FolderService(db)


@router.post("", response_model=StudentResponse)
async def create_student(
    data: StudentCreate,
    service: StudentService = Depends(get_student_service),
):
    return StudentResponse.from_model(service.create_student(data))


@router.get("", response_model=list[StudentResponse])
async def get_students(service: StudentService = Depends(get_student_service)):
    return [StudentResponse.from_model(s) for s in service.get_students()]


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: int,
    service: StudentService = Depends(get_student_service),
):
    return StudentResponse.from_model(service.get_student(student_id))


@router.patch("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: int,
    data: StudentUpdate,
    service: StudentService = Depends(get_student_service),
):
    return StudentResponse.from_model(service.update_student(student_id, data))


@router.get("/{student_id}/dashboard", response_model=StudentDashboardResponse)
async def get_student_dashboard(
    student_id: int,
    service: StudentService = Depends(get_student_service),
):
    """Active folder with its numbered sessions, plus stats across all folders"""
    dashboard = service.get_dashboard(student_id)
    active_folder = dashboard["active_folder"]
    return StudentDashboardResponse(
        student=StudentResponse.from_model(dashboard["student"]),
        activeFolder=FolderResponse.from_model(active_folder) if active_folder else None,
        sessions=[SessionResponse.from_model(s, display_number=rank) for s, rank in dashboard["sessions"]],
        stats=FolderStats(**dashboard["stats"]),
    )


@router.get("/{student_id}/folders", response_model=FolderListResponse)
async def get_student_folders(
    student_id: int,
    service: FolderService = Depends(get_folder_service),
):
    """All folders of a student, newest first"""
    folders = service.get_folders_for_student(student_id)
    stats = service.get_student_stats(student_id)
    return FolderListResponse(
        folders=[FolderResponse.from_model(f) for f in folders],
        stats=FolderStats(**stats),
    )


@router.post("/{student_id}/folders/enforce-active", response_model=ActiveFolderReportResponse)
async def enforce_active_folder(
    student_id: int,
    service: FolderService = Depends(get_folder_service),
):
    """Repair a student left with more than one active folder"""
    service.get_folders_for_student(student_id)
    report = service.enforce_single_active_folder(student_id)
    return ActiveFolderReportResponse(
        studentsChecked=report.students_checked,
        studentsWithConflicts=report.students_with_conflicts,
        foldersDeactivated=report.folders_deactivated,
        studentsWithoutActive=report.students_without_active,
    )
