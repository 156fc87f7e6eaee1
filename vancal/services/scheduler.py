import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from vancal.config import settings
from vancal.services.pipeline import RUN_LOCK, run_pipeline
from vancal.services.store import persist_report
from vancal.venues.registry import get_enabled_venues

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def start_scheduler():
    """Start the daily scrape scheduler. An empty SCRAPE_SCHEDULE disables it."""
    if not settings.scrape_schedule:
        logger.info("Scheduler disabled (no SCRAPE_SCHEDULE)")
        return
    hour, minute = settings.scrape_schedule.split(":")
    scheduler.add_job(
        _run_scrape_job,
        "cron",
        hour=int(hour),
        minute=int(minute),
        id="daily_scrape",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started: daily scrape at %s", settings.scrape_schedule)


def stop_scheduler():
    """Shut down the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


async def _run_scrape_job():
    """Scheduled run: scrape every enabled venue and store the results."""
    if RUN_LOCK.locked():
        logger.warning("Scheduled scrape skipped: another scrape is already running")
        return

    logger.info("Scheduled scrape starting")
    venues = get_enabled_venues()
    try:
        async with RUN_LOCK:
            report = await run_pipeline(venues)
            inserted = await persist_report(report, venues)
    except Exception:
        logger.exception("Scheduled scrape failed")
        return
    logger.info(
        "Scheduled scrape complete: %d events, %d new",
        report.total_events, sum(inserted.values()),
    )
