"""
Session generation for therapy programs.

Turns a weekly schedule into numbered session drafts and writes them one by one
with a fixed throttle delay. Individual failures never abort the batch; they are
collected in a BatchResult so the caller can report both totals.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import SESSION_CREATE_BACKOFF_MS, SESSION_CREATE_DELAY_MS, SESSION_CREATE_MAX_ATTEMPTS
from ...shared.validators import DAYS_OF_WEEK
from ..sessions.repository import SessionRepository

logger = logging.getLogger(__name__)


@dataclass
class SessionDraft:
    session_number: int
    title: str
    description: str
    date: datetime
    duration: int
    status: str


@dataclass
class BatchResult:
    succeeded: list[int] = field(default_factory=list)
    failed: list[tuple[SessionDraft, str]] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


def generate_session_drafts(
    total_weeks: int,
    sessions_per_week: int,
    templates: list[dict],
    start_date: date,
    first_session_status: str = "available",
    align_to_weekday: bool = False,
) -> list[SessionDraft]:
    """
    Build drafts for week w / slot s numbered 1 + w * sessions_per_week + s.

    Each draft is dated start_date + 7w days at its template's time. Slots without
    a template of their own reuse the first template. With align_to_weekday the
    date moves forward within that week to the template's day of week.
    """
    if total_weeks < 1 or total_weeks > 52:
        raise ValueError("Total weeks must be between 1 and 52")
    if sessions_per_week < 1 or sessions_per_week > 7:
        raise ValueError("Sessions per week must be between 1 and 7")
    if not templates:
        raise ValueError("At least one session template is required")

    drafts = []
    for week in range(total_weeks):
        for slot in range(sessions_per_week):
            template = templates[slot] if slot < len(templates) else templates[0]
            session_number = 1 + week * sessions_per_week + slot

            day = start_date + timedelta(days=7 * week)
            if align_to_weekday:
                target = DAYS_OF_WEEK.index(template["dayOfWeek"])
                day = day + timedelta(days=(target - day.weekday()) % 7)

            hours, minutes = (int(part) for part in template["time"].split(":"))
            session_date = datetime(day.year, day.month, day.day, hours, minutes)

            drafts.append(
                SessionDraft(
                    session_number=session_number,
                    title=f"Session {session_number}",
                    description=f"{template['duration']} minute session",
                    date=session_date,
                    duration=template["duration"],
                    status=first_session_status if session_number == 1 else "locked",
                )
            )

    return drafts


def create_sessions_sequentially(
    db: Session,
    student_id: int,
    folder_id: int,
    drafts: list[SessionDraft],
    delay_ms: Optional[int] = None,
    max_attempts: Optional[int] = None,
    backoff_ms: Optional[int] = None,
) -> BatchResult:
    """
    Insert drafts one commit at a time.

    Transient database errors are retried with exponential backoff; unique
    constraint violations (a concurrent writer took the number) are not.
    """
    delay_ms = SESSION_CREATE_DELAY_MS if delay_ms is None else delay_ms
    max_attempts = SESSION_CREATE_MAX_ATTEMPTS if max_attempts is None else max(1, max_attempts)
    backoff_ms = SESSION_CREATE_BACKOFF_MS if backoff_ms is None else backoff_ms

    repo = SessionRepository()
    result = BatchResult()

    for index, draft in enumerate(drafts):
        logger.debug(f"📝 Creating session {index + 1}/{len(drafts)} (Session #{draft.session_number})")

        for attempt in range(1, max_attempts + 1):
            try:
                session = repo.create_session(
                    db,
                    student_id=student_id,
                    folder_id=folder_id,
                    session_number=draft.session_number,
                    title=draft.title,
                    description=draft.description,
                    date=draft.date,
                    duration=draft.duration,
                    status=draft.status,
                    is_paid=False,
                )
                result.succeeded.append(session.id)
                break
            except IntegrityError as e:
                db.rollback()
                logger.error(f"❌ Session #{draft.session_number} already exists in folder {folder_id}: {e.orig}")
                result.failed.append((draft, "Session number already exists in this folder"))
                break
            except OperationalError as e:
                db.rollback()
                if attempt >= max_attempts:
                    logger.error(
                        f"❌ All {max_attempts} attempts failed for session #{draft.session_number}: {e}"
                    )
                    result.failed.append((draft, str(e.orig or e)))
                    break
                wait = backoff_ms * (2 ** (attempt - 1)) / 1000
                logger.warning(
                    f"⚠️ Attempt {attempt} failed for session #{draft.session_number}, retrying in {wait:.2f}s"
                )
                time.sleep(wait)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"❌ Failed to create session #{draft.session_number}: {e}")
                result.failed.append((draft, str(e)))
                break

        if delay_ms and index < len(drafts) - 1:
            time.sleep(delay_ms / 1000)

    logger.info(
        f"📊 Session creation complete for folder {folder_id}: "
        f"{result.created_count} successful, {result.failed_count} failed"
    )
    return result
