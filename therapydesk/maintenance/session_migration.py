"""
Move legacy sessions (created before folders existed) into folders.

Each student with unfiled sessions gets them attached to their oldest folder,
or to a new active "Existing Sessions" folder when they have none. The run is
idempotent: sessions that already belong to a folder are never touched.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from ..domain.folders.repository import FolderRepository
from ..domain.folders.service import FolderService
from ..domain.sessions.repository import SessionRepository
from ..domain.students.repository import StudentRepository

logger = logging.getLogger(__name__)

DEFAULT_FOLDER_NAME = "Existing Sessions"
DEFAULT_FOLDER_DESCRIPTION = "Migrated sessions from the previous system"


@dataclass
class StudentMigrationPlan:
    student_id: int
    student_name: str
    unfiled_sessions: int
    target_folder_id: Optional[int]  # None: a default folder will be created


@dataclass
class StudentMigrationResult:
    student_id: int
    folder_id: Optional[int] = None
    folder_created: bool = False
    sessions_moved: int = 0
    sessions_renumbered: int = 0
    error: Optional[str] = None


@dataclass
class SessionMigrationSummary:
    dry_run: bool
    plans: list[StudentMigrationPlan] = field(default_factory=list)
    results: list[StudentMigrationResult] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.error is None)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.error is not None)

    @property
    def sessions_moved(self) -> int:
        return sum(r.sessions_moved for r in self.results)


@dataclass
class MigrationValidation:
    sessions_without_folder: int
    students_with_multiple_active: list[int]

    @property
    def ok(self) -> bool:
        return self.sessions_without_folder == 0 and not self.students_with_multiple_active


def plan_session_migration(db: Session) -> list[StudentMigrationPlan]:
    """Which students have unfiled sessions and where they would go"""
    session_repo = SessionRepository()
    folder_repo = FolderRepository()
    student_repo = StudentRepository()

    plans = []
    for student_id in session_repo.get_student_ids_with_unfiled_sessions(db):
        student = student_repo.get_student_by_id(db, student_id)
        oldest = folder_repo.get_oldest_folder_for_student(db, student_id)
        plans.append(
            StudentMigrationPlan(
                student_id=student_id,
                student_name=student.name if student else f"#{student_id}",
                unfiled_sessions=len(session_repo.get_sessions_without_folder(db, student_id)),
                target_folder_id=oldest.id if oldest else None,
            )
        )
    return plans


def _migrate_student(db: Session, plan: StudentMigrationPlan) -> StudentMigrationResult:
    folder_repo = FolderRepository()
    session_repo = SessionRepository()
    result = StudentMigrationResult(student_id=plan.student_id)

    sessions = session_repo.get_sessions_without_folder(db, plan.student_id)
    if not sessions:
        return result

    folder = folder_repo.get_oldest_folder_for_student(db, plan.student_id)
    if folder is None:
        student = StudentRepository.get_student_by_id(db, plan.student_id)
        folder = folder_repo.create_folder(
            db,
            student_id=plan.student_id,
            name=DEFAULT_FOLDER_NAME,
            description=DEFAULT_FOLDER_DESCRIPTION,
            is_active=False,
            total_sessions=0,
            completed_sessions=0,
            start_date=sessions[0].date,
            status="active",
        )
        folder_repo.set_active_folder(db, student, folder)
        result.folder_created = True
        logger.info(f"  📁 Created folder '{folder.name}' ({folder.id})")
    else:
        logger.info(f"  📁 Using existing folder '{folder.name}' ({folder.id})")

    taken = session_repo.get_session_numbers(db, folder.id)
    next_free = max(taken | {s.session_number for s in sessions}, default=0) + 1
    for session in sessions:
        # Numbers already used in the target folder move to the end of it
        if session.session_number in taken:
            logger.warning(
                f"    ⚠️ Session #{session.session_number} already exists in folder {folder.id}, "
                f"moving it to #{next_free}"
            )
            session.session_number = next_free
            result.sessions_renumbered += 1
            next_free += 1
        session.folder_id = folder.id
        taken.add(session.session_number)
        result.sessions_moved += 1
    db.commit()

    FolderService(db).reconcile_folder_stats(folder.id)
    result.folder_id = folder.id
    logger.info(f"  ✅ Moved {result.sessions_moved} sessions into folder {folder.id}")
    return result


def migrate_sessions_to_folders(db: Session, confirm: bool = False) -> SessionMigrationSummary:
    """
    Attach every unfiled session to a folder.

    Without confirm only the plan is computed and nothing is written. A failure
    for one student is recorded and the run continues with the next.
    """
    plans = plan_session_migration(db)
    summary = SessionMigrationSummary(dry_run=not confirm, plans=plans)

    logger.info(f"📊 {len(plans)} students have sessions without a folder")
    for plan in plans:
        target = f"folder {plan.target_folder_id}" if plan.target_folder_id else f"new '{DEFAULT_FOLDER_NAME}' folder"
        logger.info(f"  • {plan.student_name} ({plan.student_id}): {plan.unfiled_sessions} sessions -> {target}")

    if not confirm:
        return summary

    for plan in plans:
        logger.info(f"📋 Processing student {plan.student_name} ({plan.student_id})")
        try:
            summary.results.append(_migrate_student(db, plan))
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Error migrating student {plan.student_id}: {e}")
            summary.results.append(StudentMigrationResult(student_id=plan.student_id, error=str(e)))

    logger.info(
        f"📊 Migration complete: {summary.successful} students migrated, {summary.failed} failed, "
        f"{summary.sessions_moved} sessions moved"
    )
    return summary


def validate_migration(db: Session) -> MigrationValidation:
    """Every session filed and no student with more than one active folder"""
    folders_by_student: dict[int, int] = {}
    for folder in FolderRepository.get_all_folders(db):
        if folder.is_active:
            folders_by_student[folder.student_id] = folders_by_student.get(folder.student_id, 0) + 1

    validation = MigrationValidation(
        sessions_without_folder=SessionRepository.count_sessions_without_folder(db),
        students_with_multiple_active=sorted(sid for sid, count in folders_by_student.items() if count > 1),
    )

    if validation.ok:
        logger.info("✅ Validation passed: all sessions are in folders")
    else:
        logger.warning(
            f"⚠️ Validation: {validation.sessions_without_folder} sessions without folder, "
            f"{len(validation.students_with_multiple_active)} students with multiple active folders"
        )
    return validation
