"""Route Dependencies — services, clock, mail transport and the admin guard.

Invariants:
    - Every request gets services bound to its own session (get_db)
    - Admin routes compare X-Admin-Token in constant time; a missing or wrong
      token raises AdminAuthorizationError (403)
    - One SchedulerJob per app (app.state.scheduler_job) so the timer and the
      admin trigger share its overlap lock
"""

import secrets
from datetime import date
from functools import lru_cache
from typing import Callable

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from reading_cohorts.config import Settings, get_settings
from reading_cohorts.core.date_anchor import utc_today
from reading_cohorts.core.errors import AdminAuthorizationError
from reading_cohorts.core.repository_protocols import MailTransport
from reading_cohorts.infrastructure.database import get_db, get_db_manager
from reading_cohorts.infrastructure.mail_transport import SmtpMailTransport
from reading_cohorts.services.cohort_lifecycle import CohortLifecycle
from reading_cohorts.services.container import CohortServices, build_services, open_services
from reading_cohorts.services.scheduler_job import SchedulerJob


def get_clock() -> Callable[[], date]:
    return utc_today


@lru_cache
def get_mail_transport() -> MailTransport:
    return SmtpMailTransport.from_settings(get_settings())


def build_scheduler_job(
    settings: Settings, transport: MailTransport, clock: Callable[[], date] = utc_today,
) -> SchedulerJob:
    # manager resolved per step: tests swap db_manager after the job exists
    return SchedulerJob(
        lambda: open_services(get_db_manager(), settings, transport, clock), clock,
    )


async def get_services(
    db: AsyncSession = Depends(get_db),
    transport: MailTransport = Depends(get_mail_transport),
    clock: Callable[[], date] = Depends(get_clock),
) -> CohortServices:
    return build_services(db, get_settings(), transport, clock)


async def get_lifecycle(services: CohortServices = Depends(get_services)) -> CohortLifecycle:
    return services.lifecycle


def get_scheduler_job(
    request: Request,
    transport: MailTransport = Depends(get_mail_transport),
    clock: Callable[[], date] = Depends(get_clock),
) -> SchedulerJob:
    job = getattr(request.app.state, "scheduler_job", None)
    if job is None:
        job = build_scheduler_job(get_settings(), transport, clock)
        request.app.state.scheduler_job = job
    return job


async def require_admin(x_admin_token: str | None = Header(None)) -> None:
    expected = get_settings().admin_api_token
    if not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise AdminAuthorizationError()
