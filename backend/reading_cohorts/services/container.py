"""Service Container — wires repositories, rules and transports for one unit of work.

Invariants:
    - One CohortServices per AsyncSession; services never share a session
    - Settings are read here and passed down as plain values (CohortPolicy etc.);
      core and services never call get_settings()
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from typing import AsyncGenerator, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from reading_cohorts.config import Settings
from reading_cohorts.core.cohort_rules import CohortPolicy
from reading_cohorts.core.date_anchor import utc_today
from reading_cohorts.core.domain_types import MemberId
from reading_cohorts.core.repository_protocols import MailTransport
from reading_cohorts.infrastructure.cohort_store import SqlCohortRepository
from reading_cohorts.infrastructure.database import DatabaseSessionManager
from reading_cohorts.infrastructure.email_health import SqlEmailHealth
from reading_cohorts.infrastructure.message_log import SqlMessageBoard, SqlMessageLog
from reading_cohorts.services.cohort_lifecycle import CohortLifecycle
from reading_cohorts.services.notification_dispatcher import NotificationDispatcher
from reading_cohorts.services.notification_gate import NotificationGate
from reading_cohorts.services.notification_passes import NotificationPasses


@dataclass
class CohortServices:
    db: AsyncSession
    repo: SqlCohortRepository
    lifecycle: CohortLifecycle
    gate: NotificationGate
    dispatcher: NotificationDispatcher
    passes: NotificationPasses


def policy_from_settings(settings: Settings) -> CohortPolicy:
    return CohortPolicy(
        program_name=settings.program_name,
        name_suffix=settings.cohort_name_suffix,
        default_capacity=settings.default_capacity,
        registration_window_days=settings.registration_window_days,
        legacy_cutoff_year=settings.legacy_cutoff_year,
        bootstrap_start_date=settings.bootstrap_start_date,
    )


def build_services(
    db: AsyncSession,
    settings: Settings,
    transport: MailTransport,
    clock: Callable[[], date] = utc_today,
) -> CohortServices:
    repo = SqlCohortRepository(db)
    gate = NotificationGate(SqlMessageLog(db))
    dispatcher = NotificationDispatcher(
        transport,
        SqlEmailHealth(
            db,
            max_failures=settings.email_max_failures,
            backoff_days=settings.email_failure_backoff_days,
        ),
        SqlMessageBoard(db),
        batch_size=settings.email_batch_size,
        batch_delay_seconds=settings.email_batch_delay_seconds,
        system_actor_id=(
            MemberId(settings.system_actor_id) if settings.system_actor_id is not None else None
        ),
    )
    return CohortServices(
        db=db,
        repo=repo,
        lifecycle=CohortLifecycle(repo, policy_from_settings(settings), clock),
        gate=gate,
        dispatcher=dispatcher,
        passes=NotificationPasses(
            repo, gate, dispatcher,
            reminder_days=settings.reminder_days,
            frontend_url=settings.frontend_url,
        ),
    )


@asynccontextmanager
async def open_services(
    manager: DatabaseSessionManager,
    settings: Settings,
    transport: MailTransport,
    clock: Callable[[], date] = utc_today,
) -> AsyncGenerator[CohortServices, None]:
    """Fresh session plus services, closed (and rolled back on error) on exit."""
    async with manager.session() as db:
        yield build_services(db, settings, transport, clock)
