"""
Recompute total/completed session counters for every folder.
Usage: python update_all_folder_stats.py
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from therapydesk.database import SessionLocal
from therapydesk.domain.folders.service import FolderService

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def update_all_folder_stats():
    db = SessionLocal()
    try:
        logger.info("🔄 Rebuilding folder statistics...")
        changes = FolderService(db).reconcile_all_folders()

        for change in changes:
            old_completed, old_total = change.old
            new_completed, new_total = change.new
            marker = "✏️ " if change.changed else "   "
            logger.info(
                f"{marker}{change.name} ({change.folder_id}): "
                f"{old_completed}/{old_total} -> {new_completed}/{new_total}"
            )

        updated = sum(1 for c in changes if c.changed)
        logger.info(f"\n✅ Processed {len(changes)} folders, {updated} had stale counters")
    finally:
        db.close()


if __name__ == "__main__":
    try:
        update_all_folder_stats()
    except Exception as e:
        logger.error(f"❌ Updating folder stats failed: {e}")
        sys.exit(1)
