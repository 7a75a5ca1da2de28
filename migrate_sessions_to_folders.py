"""
Attach sessions created before folders existed to a folder.
Prints the plan; writes only when CONFIRM_MIGRATION=true.
Usage: CONFIRM_MIGRATION=true python migrate_sessions_to_folders.py
"""
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from therapydesk.database import Base, SessionLocal, engine
from therapydesk.maintenance.session_migration import migrate_sessions_to_folders, validate_migration

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def run():
    confirm = os.getenv("CONFIRM_MIGRATION", "false").lower() == "true"
    Base.metadata.create_all(bind=engine, checkfirst=True)

    db = SessionLocal()
    try:
        logger.info("🚀 Starting migration of sessions to folders...")
        summary = migrate_sessions_to_folders(db, confirm=confirm)

        if summary.dry_run:
            logger.info("\n⚠️ Dry run, nothing was written. Set CONFIRM_MIGRATION=true to apply.")
            return True

        for result in summary.results:
            if result.error:
                logger.info(f"   ❌ Student {result.student_id}: {result.error}")

        logger.info("\n🔍 Validating migration...")
        validation = validate_migration(db)
        logger.info(f"   Sessions without folder: {validation.sessions_without_folder}")
        logger.info(f"   Students with multiple active folders: {validation.students_with_multiple_active}")
        return summary.failed == 0 and validation.ok
    finally:
        db.close()


if __name__ == "__main__":
    try:
        if not run():
            sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        sys.exit(1)
