"""Notification Passes — the welcome and invitation-reminder sweeps run by the scheduler.

Invariants:
    - Welcome: at most one post per cohort, ever. The gate (has any welcome record
      for this cohort) is stricter than a same-day check, so it also guarantees
      at most one welcome per day; one cohort's welcome never blocks another's
    - Cohorts without first-timers are skipped WITHOUT a record so a later pass
      can still welcome them
    - Invitation reminder: one record per (cohort, day); a second run on the same
      day is a no-op; days outside reminder_days produce neither post nor record
    - The record is written after the post and the email fan-out complete,
      regardless of individual email failures
    - Legacy cohorts are never notified
"""

import logging
from datetime import date
from typing import Sequence

from reading_cohorts.core import format_messages, notification_rules
from reading_cohorts.core.domain_types import (
    CohortId, CohortStatus, MessageType, NotificationKind,
)
from reading_cohorts.core.repository_protocols import CohortRepository
from reading_cohorts.services.notification_dispatcher import NotificationDispatcher
from reading_cohorts.services.notification_gate import NotificationGate

logger = logging.getLogger(__name__)


class NotificationPasses:
    def __init__(
        self,
        repo: CohortRepository,
        gate: NotificationGate,
        dispatcher: NotificationDispatcher,
        reminder_days: Sequence[int] = notification_rules.DEFAULT_REMINDER_DAYS,
        frontend_url: str | None = None,
    ):
        self.repo = repo
        self.gate = gate
        self.dispatcher = dispatcher
        self.reminder_days = tuple(reminder_days)
        self.frontend_url = frontend_url

    async def _active_cohorts(self):
        return await self.repo.list_cohorts(
            statuses=[CohortStatus.ACTIVE], include_legacy=False,
        )

    async def run_welcome_pass(self, today: date) -> int:
        """Post the welcome message to each newly started cohort; returns posts made."""
        posted = 0
        for cohort in await self._active_cohorts():
            cohort_id = CohortId(cohort.id)
            if not notification_rules.welcome_due(cohort, today):
                continue
            if await self.gate.ever_sent(cohort_id, NotificationKind.WELCOME):
                continue
            first_timers = await self.repo.list_first_timers(cohort_id)
            if not first_timers:
                logger.info("No first-timers yet; welcome deferred", extra={"cohort_id": cohort_id})
                continue
            message = format_messages.format_welcome_post(cohort, len(first_timers))
            await self.dispatcher.post_announcement(cohort_id, message, MessageType.ENCOURAGEMENT)
            await self.gate.mark_sent(cohort_id, NotificationKind.WELCOME, today, len(first_timers))
            posted += 1
        return posted

    async def run_invitation_reminder_pass(self, today: date) -> int:
        """Post and email the group-chat reminder on reminder days; returns cohorts reminded."""
        reminded = 0
        for cohort in await self._active_cohorts():
            cohort_id = CohortId(cohort.id)
            day = notification_rules.reminder_day(cohort, today, self.reminder_days)
            if day is None:
                continue
            kind = NotificationKind.INVITATION_REMINDER
            if await self.gate.already_sent(cohort_id, kind, today):
                logger.info(
                    f"Day {day} reminder already sent",
                    extra={"cohort_id": cohort_id, "kind": kind.value},
                )
                continue
            days_left = notification_rules.days_left_to_register(cohort, today)
            await self.dispatcher.post_announcement(
                cohort_id, format_messages.format_reminder_post(cohort, day, days_left),
                MessageType.REMINDER,
            )
            recipients = await self.repo.list_active_recipients(cohort_id)
            report = await self.dispatcher.send_emails(
                recipients,
                lambda r, c=cohort: format_messages.format_reminder_email(
                    r, c, c.chat_invite_url, today, self.frontend_url,
                ),
            )
            await self.gate.mark_sent(cohort_id, kind, today, report.sent)
            logger.info(
                f"Day {day} reminder: {report.sent}/{len(recipients)} emails delivered",
                extra={"cohort_id": cohort_id, "kind": kind.value},
            )
            reminded += 1
        return reminded
