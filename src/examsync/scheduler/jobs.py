"""
APScheduler jobs for background sync.

Two daily cron triggers (crontab strings from settings):
  - exam halls + rooms
  - participants for the next N days

Job bodies never raise: outcomes land in the sync ledger and failures in
the log, so the scheduler stays alive.
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from examsync.config import get_settings

logger = logging.getLogger(__name__)


def build_scheduler(service) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        service: SyncService the jobs call into.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        _scheduled_exam_halls_sync,
        trigger=CronTrigger.from_crontab(settings.exam_halls_sync_cron, timezone="UTC"),
        id="exam_halls_sync",
        replace_existing=True,
        kwargs={"service": service},
    )
    scheduler.add_job(
        _scheduled_participants_sync,
        trigger=CronTrigger.from_crontab(settings.participants_sync_cron, timezone="UTC"),
        id="participants_sync",
        replace_existing=True,
        kwargs={"service": service, "days": settings.participants_window_days},
    )

    return scheduler


async def _scheduled_exam_halls_sync(service) -> None:
    logger.info("Starting exam halls sync (scheduled)")
    try:
        await service.run_facility_sync()
    except Exception as exc:
        logger.error("Scheduled exam halls sync failed: %s", exc)


async def _scheduled_participants_sync(service, days: int) -> None:
    """Window sync already isolates per-date failures; this guards the rest."""
    logger.info("Starting participants sync for next %d days (scheduled)", days)
    try:
        await service.run_participant_sync_window(days)
    except Exception as exc:
        logger.error("Scheduled participants sync failed: %s", exc)
