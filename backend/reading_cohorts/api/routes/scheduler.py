"""Scheduler Admin — run the maintenance pass on demand.

Invariants:
    - Shares the app's SchedulerJob, so an on-demand run never overlaps the timer;
      an overlapping trigger comes back with skipped=true
    - Always 200: per-step failures are reported in the body, not as HTTP errors
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends

from reading_cohorts.api.dependencies import get_scheduler_job, require_admin
from reading_cohorts.schemas.scheduler import PassReportResponse
from reading_cohorts.services.scheduler_job import SchedulerJob

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/admin/scheduler", tags=["admin-scheduler"],
    dependencies=[Depends(require_admin)],
)


@router.post("/run", response_model=PassReportResponse)
async def run_scheduler_pass(job: SchedulerJob = Depends(get_scheduler_job)):
    logger.info("Scheduler pass triggered on demand")
    report = await job.run_pass()
    return PassReportResponse(
        today=report.today, ok=report.ok, skipped=report.skipped,
        steps=[asdict(step) for step in report.steps],
    )
