"""
Copy session materials from the legacy Appwrite bucket to Cloudflare R2.
Safe to re-run: files already in R2 are skipped.
Usage: CONFIRM_MIGRATION=true python migrate_files_to_r2.py
"""
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from therapydesk.config import APPWRITE_API_KEY, APPWRITE_FILES_BUCKET_ID, APPWRITE_PROJECT_ID, R2_BUCKET_NAME
from therapydesk.database import SessionLocal
from therapydesk.maintenance.file_migration import migrate_files_to_r2
from therapydesk.services.appwrite_storage import AppwriteStorageService

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def run():
    if not all([APPWRITE_PROJECT_ID, APPWRITE_API_KEY, APPWRITE_FILES_BUCKET_ID]):
        logger.error("Missing APPWRITE_PROJECT_ID, APPWRITE_API_KEY or APPWRITE_FILES_BUCKET_ID")
        return False

    logger.info(f"📤 Source: Appwrite bucket {APPWRITE_FILES_BUCKET_ID}")
    logger.info(f"📥 Target: R2 bucket {R2_BUCKET_NAME}")

    if os.getenv("CONFIRM_MIGRATION", "false").lower() != "true":
        logger.info("⚠️ Set CONFIRM_MIGRATION=true to start the file migration.")
        return True

    appwrite = AppwriteStorageService()
    db = SessionLocal()
    try:
        migration_log, log_path = migrate_files_to_r2(appwrite, db=db, log_dir=Path.cwd())
        logger.info(f"📄 Log file: {log_path}")

        if migration_log.errors:
            logger.info("\n⚠️ Files with errors:")
            for error in migration_log.errors:
                logger.info(f"   {error.file_name}: {error.error}")
            logger.info("🔄 Re-run this script to retry failed files")
            return False

        logger.info("✨ Next step: python verify_r2_migration.py")
        return True
    finally:
        db.close()
        appwrite.close()


if __name__ == "__main__":
    try:
        if not run():
            sys.exit(1)
    except Exception as e:
        logger.error(f"❌ File migration failed: {e}")
        sys.exit(1)
