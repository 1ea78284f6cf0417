#!/usr/bin/env python3
"""
Cleanup task for expired family notifications.

Notifications past their ``expires_at`` are already hidden from every
listing; this task deletes them for good.

This script can be run:
- Via the in-process APScheduler job (daily, see core/scheduler.py)
- Via cron: 0 3 * * * cd /path/to/backend && python -m tasks.cleanup_expired_notifications
- Manually: python -m tasks.cleanup_expired_notifications
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

# Add backend to path for imports
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from loguru import logger  # noqa: E402

from repositories.database import SessionLocal  # noqa: E402
from services.family_notification_service import FamilyNotificationService  # noqa: E402

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def cleanup_expired_notifications(db: "Session | None" = None) -> dict[str, int]:
    """
    Delete expired notifications.

    Args:
        db: Optional database session; a new one is created (and closed)
            when omitted.

    Returns:
        {"deleted_count": n}
    """
    should_close = db is None
    if db is None:
        db = SessionLocal()

    try:
        start_time = datetime.now(timezone.utc)
        deleted_count = FamilyNotificationService.delete_expired(db)
        elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.info(
            f"Expired notification cleanup completed in {elapsed:.2f}s - "
            f"deleted: {deleted_count}"
        )
        return {"deleted_count": deleted_count}
    except Exception as e:
        logger.error(f"Expired notification cleanup failed: {e}")
        raise
    finally:
        if should_close:
            db.close()


if __name__ == "__main__":
    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
        level="INFO",
    )

    try:
        result = cleanup_expired_notifications()
        print(f"Cleanup completed: {result}")
        sys.exit(0)
    except Exception as e:
        print(f"Cleanup failed: {e}", file=sys.stderr)
        sys.exit(1)
