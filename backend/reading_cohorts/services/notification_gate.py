"""Notification Gate — day-level dedupe over the message log.

Invariants:
    - The dedupe key is (cohort_id, kind, day_bucket); nothing else is matched,
      never message titles
    - mark_sent is called once the pass for that key has finished, even when
      individual emails failed
"""

from datetime import date

from reading_cohorts.core.domain_types import CohortId, NotificationKind
from reading_cohorts.core.repository_protocols import MessageLog


class NotificationGate:
    def __init__(self, log: MessageLog):
        self.log = log

    async def already_sent(self, cohort_id: CohortId, kind: NotificationKind, day: date) -> bool:
        return await self.log.has_record(cohort_id, kind, day)

    async def ever_sent(self, cohort_id: CohortId, kind: NotificationKind) -> bool:
        return await self.log.has_any_record(cohort_id, kind)

    async def mark_sent(
        self, cohort_id: CohortId, kind: NotificationKind, day: date, recipient_count: int,
    ) -> None:
        await self.log.write_record(cohort_id, kind, day, recipient_count)
