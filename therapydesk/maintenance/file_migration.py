"""
Copy session materials from the legacy Appwrite bucket into R2.

Legacy files are named "{session_id}_{original name}". Each one is stored in R2
under "{session_id}/{appwrite_file_id}_{clean name}"; the key depends only on
the source file, so a rerun skips everything that was already copied.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.files.repository import SessionFileRepository
from ..domain.sessions.repository import SessionRepository
from ..services.appwrite_storage import AppwriteStorageService
from ..utils.r2_storage import get_r2_client, list_r2_objects, upload_file_to_r2
from ..utils.sanitization import safe_file_name

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 10


@dataclass
class MigratedFile:
    file_id: str
    file_name: str
    r2_key: str
    size: int = 0
    mime_type: Optional[str] = None
    session_id: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class FailedFile:
    file_id: str
    file_name: str
    error: str


@dataclass
class FileMigrationLog:
    started_at: str
    successful: list[MigratedFile] = field(default_factory=list)
    skipped: list[MigratedFile] = field(default_factory=list)
    errors: list[FailedFile] = field(default_factory=list)
    total_files: int = 0
    duration_seconds: float = 0.0

    @property
    def success_rate(self) -> float:
        if not self.total_files:
            return 100.0
        return round((len(self.successful) + len(self.skipped)) * 100 / self.total_files, 2)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["summary"] = {
            "totalFiles": self.total_files,
            "successful": len(self.successful),
            "skipped": len(self.skipped),
            "errors": len(self.errors),
            "successRate": self.success_rate,
            "durationSeconds": self.duration_seconds,
            "totalSizeMigrated": sum(f.size for f in self.successful),
        }
        return data


@dataclass
class VerificationReport:
    total_files: int = 0
    verified: int = 0
    missing: list[dict] = field(default_factory=list)
    size_mismatches: list[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing and not self.size_mismatches


def split_legacy_name(file_name: str) -> tuple[str, str]:
    """"42_worksheet.pdf" -> ("42", "worksheet.pdf")"""
    session_id, sep, rest = file_name.partition("_")
    if not sep:
        return "unassigned", file_name
    return session_id, rest


def build_r2_key(file: dict[str, Any]) -> str:
    """Deterministic R2 key for a legacy Appwrite file document"""
    session_id, original = split_legacy_name(file["name"])
    return f"{session_id}/{file['$id']}_{safe_file_name(original)}"


def _record_session_file(db: Session, file: dict[str, Any], r2_key: str, session_id: str) -> None:
    """Link the migrated object to its session when the session exists locally"""
    if not session_id.isdigit():
        return
    if not SessionRepository.get_session_by_id(db, int(session_id)):
        return
    if SessionFileRepository.get_file_by_r2_key(db, r2_key):
        return
    SessionFileRepository.create_file(
        db,
        session_id=int(session_id),
        file_name=split_legacy_name(file["name"])[1],
        mime_type=file.get("mimeType"),
        size_bytes=file.get("sizeOriginal"),
        r2_key=r2_key,
        legacy_file_id=file["$id"],
    )


def migrate_files_to_r2(
    appwrite: AppwriteStorageService,
    s3_client=None,
    db: Optional[Session] = None,
    log_dir: Optional[Path] = None,
) -> tuple[FileMigrationLog, Path]:
    """
    Copy every legacy file that is not yet in R2.

    Errors on one file are logged and the run moves on; rerunning retries only
    what is still missing. The full log is written as
    migration-log-YYYY-MM-DD.json in log_dir.
    """
    start = time.time()
    s3_client = s3_client or get_r2_client()
    migration_log = FileMigrationLog(started_at=datetime.now(timezone.utc).isoformat())

    files = appwrite.list_files()
    migration_log.total_files = len(files)
    if not files:
        logger.info("✅ No files to migrate!")

    existing_keys = set(list_r2_objects(s3_client=s3_client))
    logger.info(f"📊 Found {len(files)} files to migrate, {len(existing_keys)} objects already in R2")

    for index, file in enumerate(files, start=1):
        r2_key = build_r2_key(file)
        session_id, original = split_legacy_name(file["name"])
        entry = MigratedFile(
            file_id=file["$id"],
            file_name=file["name"],
            r2_key=r2_key,
            size=file.get("sizeOriginal", 0),
            mime_type=file.get("mimeType"),
            session_id=session_id,
        )

        try:
            copied = r2_key not in existing_keys
            if copied:
                content = appwrite.download_file(file["$id"])
                metadata = {
                    "original-name": safe_file_name(original),
                    "session-id": session_id,
                    "appwrite-id": file["$id"],
                    "migrated-at": datetime.now(timezone.utc).isoformat(),
                }
                if not upload_file_to_r2(content, r2_key, file.get("mimeType"), metadata, s3_client=s3_client):
                    raise RuntimeError("Upload to R2 failed")
                existing_keys.add(r2_key)

            if db is not None:
                _record_session_file(db, file, r2_key, session_id)

            if copied:
                migration_log.successful.append(entry)
            else:
                entry.reason = "File already exists in R2"
                migration_log.skipped.append(entry)
        except (httpx.HTTPError, RuntimeError) as e:
            logger.error(f"❌ Failed to migrate {file['name']}: {e}")
            migration_log.errors.append(FailedFile(file["$id"], file["name"], str(e)))
        except SQLAlchemyError as e:
            # Object is in R2; a rerun skips the copy and retries the record
            db.rollback()
            logger.error(f"❌ Failed to record {file['name']} in session_files: {e}")
            migration_log.errors.append(FailedFile(file["$id"], file["name"], str(e)))

        if index % PROGRESS_EVERY == 0 or index == len(files):
            logger.info(
                f"🔄 Progress: {index}/{len(files)} - Success: {len(migration_log.successful)}, "
                f"Errors: {len(migration_log.errors)}, Skipped: {len(migration_log.skipped)}"
            )

    migration_log.duration_seconds = round(time.time() - start, 2)

    log_path = (log_dir or Path.cwd()) / f"migration-log-{date.today().isoformat()}.json"
    log_path.write_text(json.dumps(migration_log.to_dict(), indent=2))

    logger.info(
        f"🎉 Migration finished: {len(migration_log.successful)} migrated, "
        f"{len(migration_log.skipped)} skipped, {len(migration_log.errors)} errors "
        f"({migration_log.success_rate}% in {migration_log.duration_seconds}s)"
    )
    return migration_log, log_path


def verify_r2_migration(appwrite: AppwriteStorageService, s3_client=None) -> VerificationReport:
    """Compare legacy files against R2: every key present and sizes equal"""
    report = VerificationReport()
    files = appwrite.list_files()
    r2_objects = list_r2_objects(s3_client=s3_client or get_r2_client())
    report.total_files = len(files)

    for file in files:
        r2_key = build_r2_key(file)
        if r2_key not in r2_objects:
            report.missing.append({"fileId": file["$id"], "fileName": file["name"], "expectedR2Key": r2_key})
            continue

        expected_size = file.get("sizeOriginal")
        if expected_size is not None and expected_size != r2_objects[r2_key]:
            report.size_mismatches.append(
                {
                    "fileId": file["$id"],
                    "fileName": file["name"],
                    "r2Key": r2_key,
                    "appwriteSize": expected_size,
                    "r2Size": r2_objects[r2_key],
                }
            )
            continue

        report.verified += 1

    logger.info(
        f"📊 Verified {report.verified}/{report.total_files} files, "
        f"{len(report.missing)} missing, {len(report.size_mismatches)} size mismatches"
    )
    return report
