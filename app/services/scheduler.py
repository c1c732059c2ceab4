import logging
import time

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.config import settings
from app.metrics import SCHEDULER_LAST_RUN
from app.services.event_store import SqlEventStore
from app.services.scanner import run_refresh

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone=settings.default_timezone)


def start_scheduler():
    """Start the daily refresh scheduler."""
    hour, minute = settings.refresh_schedule.split(":")
    scheduler.add_job(
        _run_refresh_job,
        "cron",
        hour=int(hour),
        minute=int(minute),
        id="daily_refresh",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler started: daily refresh at %s (%s)",
        settings.refresh_schedule, settings.default_timezone,
    )


def stop_scheduler():
    """Shut down the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


async def _run_refresh_job():
    """Scheduled refresh over every tracked subject."""
    logger.info("Scheduled refresh starting")
    summary = await run_refresh(SqlEventStore())
    SCHEDULER_LAST_RUN.set(time.time())
    logger.info("Scheduled refresh complete: %s", summary.report())
