"""Email Health — per-recipient skip-after-N-failures with time-based backoff.

Invariants:
    - should_skip is True for permanent failures (recipient refused by the server)
    - should_skip is True when consecutive_failures >= max_failures AND the last
      failure is within backoff_days; after the window the address is retried
    - A successful send clears consecutive_failures and the permanent flag
    - Addresses are compared case-insensitively (stored lower-cased)
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reading_cohorts.models.email_health import EmailHealthRecord

logger = logging.getLogger(__name__)


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlEmailHealth:
    """EmailHealth protocol over the email_health table."""

    def __init__(
        self, db: AsyncSession, max_failures: int = 3, backoff_days: int = 7,
        now=lambda: datetime.now(timezone.utc),
    ):
        self.db = db
        self.max_failures = max_failures
        self.backoff = timedelta(days=backoff_days)
        self._now = now

    async def _get(self, recipient: str) -> EmailHealthRecord | None:
        result = await self.db.execute(
            select(EmailHealthRecord)
            .where(EmailHealthRecord.recipient == recipient.strip().lower())
        )
        return result.scalar_one_or_none()

    async def should_skip(self, recipient: str) -> bool:
        record = await self._get(recipient)
        if record is None:
            return False
        if record.permanent_failure:
            return True
        if record.consecutive_failures < self.max_failures:
            return False
        last_failure = _aware(record.last_failure_at)
        return last_failure is not None and self._now() - last_failure < self.backoff

    async def record_outcome(
        self, recipient: str, success: bool,
        reason: str | None = None, permanent: bool = False,
    ) -> None:
        record = await self._get(recipient)
        if record is None:
            if success:
                return
            record = EmailHealthRecord(
                recipient=recipient.strip().lower(),
                consecutive_failures=0, total_failures=0, permanent_failure=False,
            )
            self.db.add(record)
        now = self._now()
        if success:
            record.consecutive_failures = 0
            record.permanent_failure = False
            record.last_success_at = now
        else:
            record.consecutive_failures += 1
            record.total_failures += 1
            record.permanent_failure = record.permanent_failure or permanent
            record.last_error = reason
            record.last_failure_at = now
            logger.warning(
                f"Email failure #{record.consecutive_failures} ({reason})",
                extra={"recipient": record.recipient},
            )
        await self.db.commit()
