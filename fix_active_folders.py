"""
Repair students that ended up with more than one active folder.
The most recently created active folder is kept.
Usage: python fix_active_folders.py [student_id]
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from therapydesk.database import SessionLocal
from therapydesk.domain.folders.service import FolderService

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def fix_active_folders(student_id=None):
    db = SessionLocal()
    try:
        logger.info("🔧 Checking active folders...")
        report = FolderService(db).enforce_single_active_folder(student_id)

        logger.info("\n📊 Summary")
        logger.info(f"   Students checked: {report.students_checked}")
        logger.info(f"   Students with conflicts: {report.students_with_conflicts}")
        logger.info(f"   Folders deactivated: {report.folders_deactivated}")
        logger.info(f"   Students without an active folder: {report.students_without_active}")

        if report.folders_deactivated:
            logger.info(f"✅ Deactivated folders: {report.deactivated_folder_ids}")
        else:
            logger.info("✅ No conflicts found")
    finally:
        db.close()


if __name__ == "__main__":
    try:
        fix_active_folders(int(sys.argv[1]) if len(sys.argv) > 1 else None)
    except Exception as e:
        logger.error(f"❌ Fixing active folders failed: {e}")
        sys.exit(1)
