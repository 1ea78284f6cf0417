"""
Background task scheduler.

Uses APScheduler to purge expired family notifications once a day.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from models.config import settings

# Global scheduler instance
scheduler: BackgroundScheduler | None = None


def expired_notifications_job() -> None:
    """Scheduled job: delete notifications whose expiry has passed."""
    from tasks.cleanup_expired_notifications import cleanup_expired_notifications

    logger.info("Running scheduled expired notification cleanup")
    try:
        results = cleanup_expired_notifications()
        logger.info(f"Expired notification cleanup completed: {results}")
    except Exception as e:
        logger.error(f"Expired notification cleanup failed: {e}")
        raise


def setup_scheduler() -> None:
    """
    Configure and start the background scheduler.

    Schedules:
    - Expired notification cleanup: daily at NOTIFICATION_CLEANUP_HOUR
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        expired_notifications_job,
        CronTrigger(hour=settings.NOTIFICATION_CLEANUP_HOUR, minute=0),
        id="expired_notifications_cleanup",
        name="Expired Notification Cleanup",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(
        "Background scheduler started with notification cleanup at "
        f"{settings.NOTIFICATION_CLEANUP_HOUR:02d}:00"
    )


def shutdown_scheduler() -> None:
    """Gracefully shutdown the scheduler."""
    global scheduler

    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background scheduler stopped")
    scheduler = None


def get_scheduler_status() -> dict:
    """Get current scheduler status for the health endpoint."""
    if scheduler is None:
        return {"running": False, "jobs": []}

    jobs = [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": (
                job.next_run_time.isoformat() if job.next_run_time else None
            ),
        }
        for job in scheduler.get_jobs()
    ]
    return {"running": scheduler.running, "jobs": jobs}
