"""Scheduler Job — the periodic maintenance pass over cohorts and notifications.

Invariants:
    - Steps run in a fixed order: transitions, ensure-open, welcome, reminders
    - Each step gets its own unit of work; a step that raises is logged and
      recorded as failed, and the remaining steps still run
    - At most one pass runs at a time per process; a trigger that arrives while
      a pass is running is reported as skipped, not queued
    - Every step is idempotent, so an interrupted pass is repaired by the next one

Design Decisions:
    - open_services is injected (a factory of async context managers) so the
      job does not know about engines, settings or transports
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import AsyncContextManager, Awaitable, Callable

from reading_cohorts.core.date_anchor import utc_today
from reading_cohorts.services.container import CohortServices

logger = logging.getLogger(__name__)

ServicesFactory = Callable[[], AsyncContextManager[CohortServices]]


@dataclass
class StepResult:
    name: str
    ok: bool
    detail: dict = field(default_factory=dict)
    error: str | None = None


@dataclass
class PassReport:
    today: date
    skipped: bool = False
    steps: list[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped and all(step.ok for step in self.steps)


class SchedulerJob:
    """Runs one best-effort pass; safe to call from a timer and on demand."""

    def __init__(self, open_services: ServicesFactory, clock: Callable[[], date] = utc_today):
        self._open_services = open_services
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run_pass(self) -> PassReport:
        today = self._clock()
        if self._lock.locked():
            logger.warning("Scheduler pass already running; trigger skipped")
            return PassReport(today=today, skipped=True)
        async with self._lock:
            report = PassReport(today=today)
            logger.info(f"Scheduler pass started for {today.isoformat()}")
            for name, step in (
                ("transitions", self._transitions),
                ("ensure_open_cohort", self._ensure_open_cohort),
                ("welcome", self._welcome),
                ("invitation_reminders", self._invitation_reminders),
            ):
                report.steps.append(await self._run_step(name, step, today))
            failed = [s.name for s in report.steps if not s.ok]
            if failed:
                logger.warning(f"Scheduler pass finished with failed steps: {', '.join(failed)}")
            else:
                logger.info("Scheduler pass finished")
            return report

    async def _run_step(
        self,
        name: str,
        step: Callable[[CohortServices, date], Awaitable[dict]],
        today: date,
    ) -> StepResult:
        logger.info(f"Scheduler step '{name}' started", extra={"step": name})
        try:
            async with self._open_services() as services:
                detail = await step(services, today)
        except Exception as e:
            logger.exception(f"Scheduler step '{name}' failed", extra={"step": name})
            return StepResult(name=name, ok=False, error=f"{type(e).__name__}: {e}")
        logger.info(f"Scheduler step '{name}' finished: {detail}", extra={"step": name})
        return StepResult(name=name, ok=True, detail=detail)

    # ─── Steps ───────────────────────────────────────────────────

    @staticmethod
    async def _transitions(services: CohortServices, today: date) -> dict:
        return await services.lifecycle.run_transitions()

    @staticmethod
    async def _ensure_open_cohort(services: CohortServices, today: date) -> dict:
        lifecycle = services.lifecycle
        detail: dict = {}
        if await lifecycle.get_current_open_cohort() is None:
            created = await lifecycle.ensure_next_cohort_exists()
            detail["created_cohort_id"] = created.id if created else None
        if not await lifecycle.has_active_cohort():
            detail["transitions"] = await lifecycle.run_transitions()
        return detail

    @staticmethod
    async def _welcome(services: CohortServices, today: date) -> dict:
        return {"posted": await services.passes.run_welcome_pass(today)}

    @staticmethod
    async def _invitation_reminders(services: CohortServices, today: date) -> dict:
        return {"reminded": await services.passes.run_invitation_reminder_pass(today)}
