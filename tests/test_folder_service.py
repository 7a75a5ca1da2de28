from datetime import datetime

from therapydesk.domain.folders.service import FolderService
from therapydesk.models import SessionFolder, Student

from .helpers import add_folder, add_session


def active_ids(db, student_id):
    return [
        f.id
        for f in db.query(SessionFolder)
        .filter(SessionFolder.student_id == student_id, SessionFolder.is_active.is_(True))
        .all()
    ]


def test_enforcer_keeps_most_recent_active_folder(db, student):
    f1 = add_folder(db, student, "Program One", is_active=True, created_at=datetime(2024, 3, 1))
    f2 = add_folder(db, student, "Program Two", is_active=True, created_at=datetime(2024, 3, 2))

    report = FolderService(db).enforce_single_active_folder()

    assert active_ids(db, student.id) == [f2.id]
    assert report.students_with_conflicts == 1
    assert report.deactivated_folder_ids == [f1.id]
    db.refresh(student)
    assert student.active_folder_id == f2.id


def test_enforcer_breaks_ties_by_id(db, student):
    same_day = datetime(2024, 3, 1, 12, 0)
    add_folder(db, student, "Program One", is_active=True, created_at=same_day)
    add_folder(db, student, "Program Two", is_active=True, created_at=same_day)
    f3 = add_folder(db, student, "Program Three", is_active=True, created_at=same_day)

    report = FolderService(db).enforce_single_active_folder()

    assert active_ids(db, student.id) == [f3.id]
    assert report.folders_deactivated == 2


def test_enforcer_across_students(db, student):
    other = Student(name="Noah Berg")
    db.add(other)
    db.commit()
    add_folder(db, student, "Program One", is_active=True)
    add_folder(db, student, "Program Two", is_active=True)
    add_folder(db, other, "Only Program", is_active=False)

    report = FolderService(db).enforce_single_active_folder()

    assert report.students_checked == 2
    assert report.students_without_active == 1
    assert len(active_ids(db, student.id)) == 1
    assert active_ids(db, other.id) == []


def test_enforcer_is_a_no_op_when_consistent(db, student):
    folder = add_folder(db, student, "Program One", is_active=True)
    add_folder(db, student, "Program Two", is_active=False)

    report = FolderService(db).enforce_single_active_folder(student.id)

    assert report.folders_deactivated == 0
    assert active_ids(db, student.id) == [folder.id]


def test_reconcile_matches_live_counts(db, student):
    folder = add_folder(db, student, "Program One", is_active=True)
    for number in range(1, 6):
        add_session(db, student, folder, number, status="completed" if number <= 2 else "locked")
    folder.total_sessions = 40
    folder.completed_sessions = 7
    db.commit()

    folder = FolderService(db).reconcile_folder_stats(folder.id)

    assert (folder.total_sessions, folder.completed_sessions) == (5, 2)


def test_reconcile_all_reports_old_and_new(db, student):
    stale = add_folder(db, student, "Program One")
    fresh = add_folder(db, student, "Program Two")
    add_session(db, student, stale, 1, status="completed")

    changes = {c.folder_id: c for c in FolderService(db).reconcile_all_folders()}

    assert changes[stale.id].old == (0, 0)
    assert changes[stale.id].new == (1, 1)
    assert changes[stale.id].changed
    assert not changes[fresh.id].changed


def test_student_stats_rollup(db, student):
    first = add_folder(db, student, "Program One", is_active=True)
    second = add_folder(db, student, "Program Two")
    second.status = "completed"
    db.commit()
    add_session(db, student, first, 1, status="completed")
    add_session(db, student, second, 1)
    service = FolderService(db)
    service.reconcile_all_folders()

    stats = service.get_student_stats(student.id)

    assert stats == {
        "totalFolders": 2,
        "activeFolders": 1,
        "completedFolders": 1,
        "totalSessions": 2,
        "completedSessions": 1,
    }
