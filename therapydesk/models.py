from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    parent_name = Column(String(255), nullable=True)
    parent_email = Column(String(255), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    # Single owner of the "active folder" role; folder.is_active flags mirror it
    active_folder_id = Column(
        Integer,
        ForeignKey(
            "session_folders.id",
            use_alter=True,
            name="fk_students_active_folder_id",
            ondelete="SET NULL",
        ),
        nullable=True,
    )
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    folders = relationship(
        "SessionFolder",
        back_populates="student",
        foreign_keys="SessionFolder.student_id",
    )
    active_folder = relationship("SessionFolder", foreign_keys=[active_folder_id], post_update=True)
    sessions = relationship("TherapySession", back_populates="student")


class SessionFolder(Base):
    """A therapy program: a named group of sessions for one student"""

    __tablename__ = "session_folders"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False, index=True)

    # Cached counters, recomputed from therapy_sessions by the stats reconciler
    total_sessions = Column(Integer, default=0, nullable=False)
    completed_sessions = Column(Integer, default=0, nullable=False)

    # Schedule the folder was generated from (used to regenerate missing sessions)
    total_weeks = Column(Integer, nullable=True)
    sessions_per_week = Column(Integer, nullable=True)
    schedule = Column(JSON, nullable=True)  # {templates, firstSessionStatus, alignToWeekday}

    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    status = Column(String(20), default="active", nullable=False)  # active, completed, paused

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    student = relationship("Student", back_populates="folders", foreign_keys=[student_id])
    sessions = relationship("TherapySession", back_populates="folder")


class TherapySession(Base):
    __tablename__ = "therapy_sessions"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "folder_id", "session_number", name="uq_session_number_per_folder"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    # Nullable only for legacy rows that predate folders (see migrate_sessions_to_folders.py)
    folder_id = Column(Integer, ForeignKey("session_folders.id"), nullable=True, index=True)
    session_number = Column(Integer, nullable=False)  # Sequential number within folder

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime, nullable=False)
    duration = Column(Integer, default=45, nullable=False)  # minutes

    # locked, available, completed, cancelled
    status = Column(String(20), default="locked", nullable=False, index=True)
    is_paid = Column(Boolean, default=False, nullable=False)
    therapist_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    student = relationship("Student", back_populates="sessions")
    folder = relationship("SessionFolder", back_populates="sessions")
    files = relationship("SessionFile", back_populates="session", cascade="all, delete-orphan")


class SessionFile(Base):
    """Session material stored in R2"""

    __tablename__ = "session_files"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("therapy_sessions.id"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=True)
    size_bytes = Column(BigInteger, nullable=True)
    r2_key = Column(String(500), unique=True, nullable=False)
    legacy_file_id = Column(String(64), nullable=True, index=True)  # Appwrite file id if migrated
    created_at = Column(DateTime, server_default=func.now())

    session = relationship("TherapySession", back_populates="files")
