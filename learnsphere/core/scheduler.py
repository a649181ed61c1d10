import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from learnsphere.core.config import settings
from learnsphere.quiz.registry import quiz_session_registry

logger = logging.getLogger(__name__)


def purge_expired_quiz_sessions():
    """
    Scheduled task to drop abandoned live quiz sessions.
    Their proctoring counters are discarded with them.
    """
    try:
        purged = quiz_session_registry.purge_expired()
        logger.info(
            f"[{datetime.now(timezone.utc)}] Quiz session cleanup completed. "
            f"Purged {purged} expired sessions."
        )
    except Exception as e:
        logger.error(f"Error during quiz session cleanup: {e}")


def start_scheduler() -> BackgroundScheduler:
    """
    Initialize and start the APScheduler for quiz session cleanup.
    """
    scheduler = BackgroundScheduler()

    scheduler.add_job(
        purge_expired_quiz_sessions,
        trigger=IntervalTrigger(minutes=settings.quiz_session_purge_interval_minutes),
        id="purge_expired_quiz_sessions",
        name="Purge expired quiz sessions",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(
        f"Scheduler started - quiz sessions purged every "
        f"{settings.quiz_session_purge_interval_minutes} minutes"
    )
    return scheduler
