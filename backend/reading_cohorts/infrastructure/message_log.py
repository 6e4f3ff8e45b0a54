"""Message Log & Board — dedupe records and group-visible posts.

Invariants:
    - write_record is idempotent on (cohort_id, kind, day_bucket): a second write
      for the same key is a no-op, not an error
    - post() always commits its row before returning the id
"""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reading_cohorts.core.domain_types import CohortId, MemberId, NotificationKind
from reading_cohorts.models.group_message import GroupMessage
from reading_cohorts.models.notification_record import NotificationRecord

logger = logging.getLogger(__name__)


class SqlMessageLog:
    """MessageLog protocol over the notification_records table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def has_record(
        self, cohort_id: CohortId, kind: NotificationKind, day_bucket: date,
    ) -> bool:
        result = await self.db.execute(
            select(NotificationRecord.id)
            .where(NotificationRecord.cohort_id == cohort_id)
            .where(NotificationRecord.kind == NotificationKind(kind).value)
            .where(NotificationRecord.day_bucket == day_bucket)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def has_any_record(self, cohort_id: CohortId, kind: NotificationKind) -> bool:
        result = await self.db.execute(
            select(NotificationRecord.id)
            .where(NotificationRecord.cohort_id == cohort_id)
            .where(NotificationRecord.kind == NotificationKind(kind).value)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def write_record(
        self, cohort_id: CohortId, kind: NotificationKind, day_bucket: date,
        recipient_count: int,
    ) -> None:
        if await self.has_record(cohort_id, kind, day_bucket):
            logger.info(
                "Notification record already present",
                extra={"cohort_id": cohort_id, "kind": kind, "day_bucket": day_bucket},
            )
            return
        self.db.add(NotificationRecord(
            cohort_id=cohort_id,
            kind=NotificationKind(kind).value,
            day_bucket=day_bucket,
            recipient_count=recipient_count,
        ))
        await self.db.commit()

    async def list_records(self, cohort_id: CohortId) -> list[NotificationRecord]:
        result = await self.db.execute(
            select(NotificationRecord)
            .where(NotificationRecord.cohort_id == cohort_id)
            .order_by(NotificationRecord.day_bucket.asc(), NotificationRecord.id.asc())
        )
        return list(result.scalars().all())


class SqlMessageBoard:
    """MessageBoard protocol over the group_messages table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def post(
        self, cohort_id: CohortId, title: str, content: str,
        message_type: str, author_id: MemberId | None,
    ) -> int:
        message = GroupMessage(
            cohort_id=cohort_id, title=title, content=content,
            message_type=message_type, author_id=author_id,
        )
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        return message.id

    async def list_posts(self, cohort_id: CohortId) -> list[GroupMessage]:
        result = await self.db.execute(
            select(GroupMessage)
            .where(GroupMessage.cohort_id == cohort_id)
            .order_by(GroupMessage.created_at.desc(), GroupMessage.id.desc())
        )
        return list(result.scalars().all())
