"""
Scheduled jobs
APScheduler runs the nightly sweep that flags expired inventory batches
"""

import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from oms.core.config import settings
from oms.db.session import SessionLocal, transaction
from oms.services.inventory import expire_batches

logger = logging.getLogger(__name__)

# global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


async def auto_expire_batches() -> int:
    """Flag every batch past its expiry date"""
    try:
        async with SessionLocal() as db:
            async with transaction(db):
                batches = await expire_batches(db)
        logger.info(f"Expiry sweep done: {len(batches)} batch(es) flagged")
        return len(batches)
    except Exception as e:
        logger.exception(f"Expiry sweep failed: {e}")
        return 0


def init_scheduler():
    """Create and start the scheduler"""
    global scheduler

    if not settings.AUTO_EXPIRE_ENABLED:
        logger.info("Batch expiry sweep disabled")
        return

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        auto_expire_batches,
        trigger=CronTrigger(
            hour=settings.AUTO_EXPIRE_HOUR,
            minute=settings.AUTO_EXPIRE_MINUTE
        ),
        id="auto_expire_batches",
        name="Flag expired inventory batches",
        replace_existing=True
    )

    scheduler.start()
    logger.info(
        f"Scheduler started - expiry sweep daily at "
        f"{settings.AUTO_EXPIRE_HOUR:02d}:{settings.AUTO_EXPIRE_MINUTE:02d}"
    )


def shutdown_scheduler():
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("Scheduler stopped")


def get_scheduler_status() -> dict:
    if not scheduler:
        return {
            "enabled": settings.AUTO_EXPIRE_ENABLED,
            "running": False,
            "jobs": []
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
        })

    return {
        "enabled": settings.AUTO_EXPIRE_ENABLED,
        "running": scheduler.running,
        "jobs": jobs
    }
