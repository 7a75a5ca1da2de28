"""
Check that every legacy Appwrite file exists in R2 with the same size.
Usage: python verify_r2_migration.py
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from therapydesk.maintenance.file_migration import verify_r2_migration
from therapydesk.services.appwrite_storage import AppwriteStorageService

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def run():
    appwrite = AppwriteStorageService()
    try:
        report = verify_r2_migration(appwrite)
    finally:
        appwrite.close()

    logger.info(f"✅ Verified: {report.verified}/{report.total_files}")
    logger.info(f"❌ Missing files: {len(report.missing)}")
    for missing in report.missing:
        logger.info(f"   {missing['fileName']} ({missing['expectedR2Key']})")
    logger.info(f"⚠️ Size mismatches: {len(report.size_mismatches)}")
    for mismatch in report.size_mismatches:
        logger.info(f"   {mismatch['fileName']}: Appwrite {mismatch['appwriteSize']}B vs R2 {mismatch['r2Size']}B")

    if report.ok:
        logger.info("🎉 All files are in R2")
    else:
        logger.info("Re-run python migrate_files_to_r2.py for missing files")
    return report.ok


if __name__ == "__main__":
    try:
        if not run():
            sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Verification failed: {e}")
        sys.exit(1)
