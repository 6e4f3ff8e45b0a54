"""Scheduler Runtime — APScheduler timer that drives SchedulerJob.run_pass.

Invariants:
    - At most one scheduler per process (module-level guard)
    - One interval job, max_instances=1, coalesce=True: missed runs collapse
      into a single catch-up run
    - The first run fires immediately when run_on_startup is set
    - No business logic lives here; the timer only calls run_pass
"""

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from reading_cohorts.services.scheduler_job import SchedulerJob

logger = logging.getLogger(__name__)

JOB_ID = "cohort_maintenance_pass"

_scheduler: AsyncIOScheduler | None = None


def start_scheduler(
    job: SchedulerJob,
    interval_hours: int = 24,
    run_on_startup: bool = True,
) -> AsyncIOScheduler | None:
    """Start the timer on the running event loop; no-op if already started."""
    global _scheduler
    if _scheduler is not None:
        logger.info("Scheduler already running, skipping initialization")
        return _scheduler

    # next_run_time=None would add the job paused
    first_run = {"next_run_time": datetime.now(timezone.utc)} if run_on_startup else {}
    _scheduler = AsyncIOScheduler(timezone=timezone.utc)
    _scheduler.add_job(
        job.run_pass,
        trigger="interval",
        hours=interval_hours,
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        **first_run,
    )
    _scheduler.start()
    logger.info(f"Scheduler started: every {interval_hours}h (run on startup: {run_on_startup})")
    return _scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is None:
        return
    _scheduler.shutdown(wait=False)
    _scheduler = None
    logger.info("Scheduler stopped")


def scheduler_running() -> bool:
    return _scheduler is not None and _scheduler.running
