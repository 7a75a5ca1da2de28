"""Session folder service - Business logic for folders, statistics and the active folder"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import SessionFolder, Student
from ...utils.r2_storage import delete_file_from_r2
from ...utils.sanitization import sanitize_string
from ..sessions.repository import SessionRepository
from ..students.repository import StudentRepository
from .generation import BatchResult, create_sessions_sequentially, generate_session_drafts
from .repository import FolderRepository
from .schemas import FolderCreate, FolderUpdate, FolderWithSessionsCreate

logger = logging.getLogger(__name__)


@dataclass
class ActiveFolderReport:
    students_checked: int = 0
    students_with_conflicts: int = 0
    folders_deactivated: int = 0
    students_without_active: int = 0
    deactivated_folder_ids: list[int] = field(default_factory=list)


@dataclass
class StatsChange:
    folder_id: int
    name: str
    old: tuple[int, int]
    new: tuple[int, int]

    @property
    def changed(self) -> bool:
        return self.old != self.new


class FolderService:
    """Service layer for session folder business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = FolderRepository()
        self.session_repo = SessionRepository()
        self.student_repo = StudentRepository()

    def _get_student(self, student_id: int) -> Student:
        student = self.student_repo.get_student_by_id(self.db, student_id)
        if not student:
            raise HTTPException(status_code=404, detail="Student not found")
        return student

    def get_folder(self, folder_id: int) -> SessionFolder:
        folder = self.repo.get_folder_by_id(self.db, folder_id)
        if not folder:
            raise HTTPException(status_code=404, detail="Session folder not found")
        return folder

    def get_folders_for_student(self, student_id: int) -> list[SessionFolder]:
        self._get_student(student_id)
        return self.repo.get_folders_for_student(self.db, student_id)

    # ========================================================================
    # CREATION
    # ========================================================================

    def _create_folder(
        self,
        student: Student,
        name: str,
        description: Optional[str],
        set_active: bool,
        start_date: Optional[date] = None,
        **schedule_fields,
    ) -> SessionFolder:
        # A student's first folder is always active
        is_first = self.repo.count_folders_for_student(self.db, student.id) == 0
        make_active = is_first or set_active

        start = start_date or date.today()
        folder = self.repo.create_folder(
            self.db,
            student_id=student.id,
            name=sanitize_string(name.strip()),
            description=sanitize_string(description or ""),
            is_active=False,
            total_sessions=0,
            completed_sessions=0,
            start_date=datetime(start.year, start.month, start.day),
            status="active",
            **schedule_fields,
        )

        if make_active:
            self.repo.set_active_folder(self.db, student, folder)
            self.db.refresh(folder)

        logger.info(f"✅ Created session folder: {folder.name} for student {student.id} (active={folder.is_active})")
        return folder

    def create_folder(self, data: FolderCreate) -> SessionFolder:
        """Create an empty folder"""
        student = self._get_student(data.studentId)
        return self._create_folder(student, data.name, data.description, data.setActive)

    def create_folder_with_sessions(self, data: FolderWithSessionsCreate) -> tuple[SessionFolder, BatchResult]:
        """
        Create a folder and generate totalWeeks x sessionsPerWeek sessions.
        Partial failures are reported in the BatchResult, never rolled back.
        """
        student = self._get_student(data.studentId)
        templates = [t.model_dump() for t in data.sessionTemplates]
        start = data.startDate or date.today()

        try:
            drafts = generate_session_drafts(
                data.totalWeeks,
                data.sessionsPerWeek,
                templates,
                start,
                first_session_status=data.firstSessionStatus,
                align_to_weekday=data.alignToWeekday,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        logger.info(f"🚀 Creating folder '{data.name}' with {len(drafts)} sessions for student {student.id}")

        folder = self._create_folder(
            student,
            data.name,
            data.description or f"{data.totalWeeks} weeks therapy program",
            data.setActive,
            start_date=start,
            total_weeks=data.totalWeeks,
            sessions_per_week=data.sessionsPerWeek,
            schedule={
                "templates": templates,
                "firstSessionStatus": data.firstSessionStatus,
                "alignToWeekday": data.alignToWeekday,
            },
        )

        result = create_sessions_sequentially(self.db, student.id, folder.id, drafts)
        if result.failed_count:
            logger.warning(
                f"⚠️ Created folder {folder.id} but {result.failed_count}/{len(drafts)} sessions failed to create"
            )

        folder = self.reconcile_folder_stats(folder.id)
        return folder, result

    def fill_missing_sessions(self, folder_id: int) -> tuple[SessionFolder, BatchResult]:
        """Regenerate the folder's schedule and create only the session numbers that are absent"""
        folder = self.get_folder(folder_id)
        if not folder.schedule or not folder.total_weeks or not folder.sessions_per_week:
            raise HTTPException(status_code=400, detail="Folder has no stored schedule to regenerate")

        start = (folder.start_date or folder.created_at or datetime.now()).date()
        drafts = generate_session_drafts(
            folder.total_weeks,
            folder.sessions_per_week,
            folder.schedule.get("templates", []),
            start,
            first_session_status=folder.schedule.get("firstSessionStatus", "available"),
            align_to_weekday=folder.schedule.get("alignToWeekday", False),
        )

        existing = self.session_repo.get_session_numbers(self.db, folder.id)
        missing = [d for d in drafts if d.session_number not in existing]
        logger.info(f"🔄 Folder {folder.id}: {len(missing)} of {len(drafts)} scheduled sessions missing")

        result = create_sessions_sequentially(self.db, folder.student_id, folder.id, missing)
        folder = self.reconcile_folder_stats(folder.id)
        return folder, result

    # ========================================================================
    # UPDATE / DELETE
    # ========================================================================

    def update_folder(self, folder_id: int, data: FolderUpdate) -> SessionFolder:
        folder = self.get_folder(folder_id)

        if data.setActive:
            self.set_active_folder(folder_id)

        updates = {}
        if data.name is not None:
            updates["name"] = sanitize_string(data.name.strip())
        if data.description is not None:
            updates["description"] = sanitize_string(data.description.strip())
        if data.status is not None:
            updates["status"] = data.status
        if data.endDate is not None:
            updates["end_date"] = data.endDate

        folder = self.repo.update_folder(self.db, folder, **updates)
        logger.info(f"✅ Updated folder {folder_id}")
        return folder

    def delete_folder(self, folder_id: int, cascade: bool = False) -> dict:
        """Delete a folder; its sessions go too only when cascade is requested"""
        folder = self.get_folder(folder_id)
        total, _ = self.session_repo.count_folder_sessions(self.db, folder_id)

        if total and not cascade:
            raise HTTPException(
                status_code=409,
                detail="Cannot delete folder with existing sessions. Use cascade=true to delete sessions as well.",
            )

        if cascade and total:
            logger.info(f"🗑️ Deleting {total} sessions in folder {folder_id}")
            for session in folder.sessions:
                for session_file in session.files:
                    if not delete_file_from_r2(session_file.r2_key):
                        logger.warning(f"⚠️ Could not delete R2 object {session_file.r2_key}")
            self.session_repo.delete_sessions_in_folder(self.db, folder_id)

        self.repo.delete_folder(self.db, folder)
        logger.info(f"✅ Deleted folder {folder_id}")

        return {
            "message": "Session folder and all sessions deleted successfully"
            if cascade
            else "Session folder deleted successfully",
            "deletedSessions": total if cascade else 0,
        }

    # ========================================================================
    # ACTIVE FOLDER
    # ========================================================================

    def set_active_folder(self, folder_id: int) -> SessionFolder:
        """Make a folder the student's active one, deactivating the others in the same commit"""
        folder = self.get_folder(folder_id)
        student = self._get_student(folder.student_id)
        self.repo.set_active_folder(self.db, student, folder)
        self.db.refresh(folder)
        logger.info(f"✅ Set folder {folder_id} as active for student {student.id}")
        return folder

    def enforce_single_active_folder(self, student_id: Optional[int] = None) -> ActiveFolderReport:
        """
        Repair pass: every student ends with at most one active folder.
        The most recently created active folder wins; ties go to the highest id.
        The student's active folder reference is re-pointed at the survivor.
        """
        report = ActiveFolderReport()
        folders_by_student: dict[int, list[SessionFolder]] = defaultdict(list)
        for folder in self.repo.get_all_folders(self.db, student_id):
            folders_by_student[folder.student_id].append(folder)

        for owner_id, folders in folders_by_student.items():
            report.students_checked += 1
            active = [f for f in folders if f.is_active]
            active.sort(key=lambda f: (f.created_at or datetime.min, f.id), reverse=True)

            if len(active) > 1:
                report.students_with_conflicts += 1
                keep, to_deactivate = active[0], active[1:]
                logger.warning(
                    f"⚠️ Student {owner_id} has {len(active)} active folders, keeping '{keep.name}' ({keep.id})"
                )
                self.repo.deactivate_folders(self.db, to_deactivate)
                for folder in to_deactivate:
                    logger.info(f"   ✅ Deactivated '{folder.name}' ({folder.id})")
                    report.deactivated_folder_ids.append(folder.id)
                report.folders_deactivated += len(to_deactivate)
            elif not active:
                report.students_without_active += 1
                logger.info(f"⚠️ Student {owner_id} has no active folder")

            survivor_id = active[0].id if active else None
            student = self.student_repo.get_student_by_id(self.db, owner_id)
            if student is not None and student.active_folder_id != survivor_id:
                student.active_folder_id = survivor_id
                self.db.commit()

        logger.info(
            f"📊 Active folder check: {report.students_checked} students, "
            f"{report.students_with_conflicts} with conflicts, {report.folders_deactivated} folders fixed"
        )
        return report

    # ========================================================================
    # STATISTICS
    # ========================================================================

    def reconcile_folder_stats(self, folder_id: int) -> SessionFolder:
        """Recompute total/completed counters from the folder's live sessions"""
        folder = self.get_folder(folder_id)
        total, completed = self.session_repo.count_folder_sessions(self.db, folder_id)
        folder = self.repo.update_folder_stats(self.db, folder, total, completed)
        logger.info(f"✅ Updated stats for folder {folder_id}: {completed}/{total} sessions")
        return folder

    def reconcile_all_folders(self) -> list[StatsChange]:
        """Rebuild counters for every folder, returning old -> new per folder"""
        changes = []
        for folder in self.repo.get_all_folders(self.db):
            old = (folder.completed_sessions, folder.total_sessions)
            total, completed = self.session_repo.count_folder_sessions(self.db, folder.id)
            self.repo.update_folder_stats(self.db, folder, total, completed)
            changes.append(StatsChange(folder.id, folder.name, old, (completed, total)))
        return changes

    def get_student_stats(self, student_id: int) -> dict:
        """Rollup of the cached counters across a student's folders"""
        folders = self.get_folders_for_student(student_id)
        return {
            "totalFolders": len(folders),
            "activeFolders": sum(1 for f in folders if f.is_active),
            "completedFolders": sum(1 for f in folders if f.status == "completed"),
            "totalSessions": sum(f.total_sessions or 0 for f in folders),
            "completedSessions": sum(f.completed_sessions or 0 for f in folders),
        }
