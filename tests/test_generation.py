from datetime import date, datetime

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from therapydesk.domain.folders.generation import create_sessions_sequentially, generate_session_drafts
from therapydesk.domain.sessions.repository import SessionRepository
from therapydesk.models import SessionFolder

MONDAY = {"dayOfWeek": "monday", "time": "16:00", "duration": 45}
THURSDAY = {"dayOfWeek": "thursday", "time": "09:30", "duration": 60}


def test_drafts_are_numbered_contiguously():
    drafts = generate_session_drafts(12, 2, [MONDAY, THURSDAY], date(2024, 1, 1))

    assert [d.session_number for d in drafts] == list(range(1, 25))


def test_slot_and_week_layout():
    drafts = generate_session_drafts(3, 2, [MONDAY, THURSDAY], date(2024, 1, 1))

    # week 1 (zero based), slot 1 -> 1 + 1 * 2 + 1
    fourth = drafts[3]
    assert fourth.session_number == 4
    assert fourth.date == datetime(2024, 1, 8, 9, 30)
    assert fourth.duration == 60
    assert fourth.title == "Session 4"
    assert fourth.description == "60 minute session"


def test_only_first_session_gets_first_status():
    drafts = generate_session_drafts(4, 1, [MONDAY], date(2024, 1, 1))

    assert drafts[0].status == "available"
    assert {d.status for d in drafts[1:]} == {"locked"}

    locked = generate_session_drafts(2, 1, [MONDAY], date(2024, 1, 1), first_session_status="locked")
    assert [d.status for d in locked] == ["locked", "locked"]


def test_missing_templates_fall_back_to_first():
    drafts = generate_session_drafts(1, 3, [THURSDAY], date(2024, 1, 1))

    assert [d.duration for d in drafts] == [60, 60, 60]


def test_align_to_weekday_moves_forward_within_week():
    # 2024-01-03 is a Wednesday
    drafts = generate_session_drafts(
        2, 2, [MONDAY, {**THURSDAY, "dayOfWeek": "friday"}], date(2024, 1, 3), align_to_weekday=True
    )

    assert [d.date.date() for d in drafts] == [
        date(2024, 1, 8),
        date(2024, 1, 5),
        date(2024, 1, 15),
        date(2024, 1, 12),
    ]


@pytest.mark.parametrize("weeks,per_week", [(0, 1), (53, 1), (4, 0), (4, 8)])
def test_out_of_range_schedule_is_rejected(weeks, per_week):
    with pytest.raises(ValueError):
        generate_session_drafts(weeks, per_week, [MONDAY], date(2024, 1, 1))


def _folder(db, student):
    folder = SessionFolder(student_id=student.id, name="Spring Program", is_active=True)
    db.add(folder)
    db.commit()
    db.refresh(folder)
    return folder


def test_sequential_creation_writes_every_draft(db, student):
    folder = _folder(db, student)
    drafts = generate_session_drafts(3, 2, [MONDAY, THURSDAY], date(2024, 1, 1))

    result = create_sessions_sequentially(db, student.id, folder.id, drafts, delay_ms=0)

    assert result.created_count == 6
    assert result.failed_count == 0
    assert SessionRepository.get_session_numbers(db, folder.id) == set(range(1, 7))


def test_transient_errors_are_retried(db, student, monkeypatch):
    folder = _folder(db, student)
    drafts = generate_session_drafts(1, 2, [MONDAY], date(2024, 1, 1))
    original = SessionRepository.create_session
    calls = {"count": 0}

    def flaky_create(db, **data):
        calls["count"] += 1
        if calls["count"] == 1:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return original(db, **data)

    monkeypatch.setattr(SessionRepository, "create_session", staticmethod(flaky_create))

    result = create_sessions_sequentially(db, student.id, folder.id, drafts, delay_ms=0, backoff_ms=0)

    assert result.created_count == 2
    assert calls["count"] == 3


def test_failures_are_collected_without_aborting(db, student, monkeypatch):
    folder = _folder(db, student)
    drafts = generate_session_drafts(1, 3, [MONDAY], date(2024, 1, 1))
    original = SessionRepository.create_session
    calls = {"count": 0}

    def failing_second(db, **data):
        if data["session_number"] == 2:
            calls["count"] += 1
            raise OperationalError("INSERT", {}, Exception("connection reset"))
        return original(db, **data)

    monkeypatch.setattr(SessionRepository, "create_session", staticmethod(failing_second))

    result = create_sessions_sequentially(
        db, student.id, folder.id, drafts, delay_ms=0, max_attempts=3, backoff_ms=0
    )

    assert result.created_count == 2
    assert [draft.session_number for draft, _ in result.failed] == [2]
    assert calls["count"] == 3


def test_duplicate_numbers_are_not_retried(db, student, monkeypatch):
    folder = _folder(db, student)
    drafts = generate_session_drafts(1, 1, [MONDAY], date(2024, 1, 1))
    calls = {"count": 0}

    def duplicate(db, **data):
        calls["count"] += 1
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(SessionRepository, "create_session", staticmethod(duplicate))

    result = create_sessions_sequentially(db, student.id, folder.id, drafts, delay_ms=0)

    assert result.failed_count == 1
    assert calls["count"] == 1
