"""NotificationRecord ORM — the dedupe log for the notification pipeline.

Invariants:
    - UNIQUE(cohort_id, kind, day_bucket): at most one record per key
    - day_bucket is the UTC calendar day the notification was emitted

Design Decisions:
    - Structured key columns instead of matching on post titles
"""

from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reading_cohorts.db.base import Base


class NotificationRecord(Base):
    __tablename__ = "notification_records"
    __table_args__ = (
        UniqueConstraint(
            "cohort_id", "kind", "day_bucket", name="uq_notification_key",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cohort_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(40), nullable=False)
    day_bucket: Mapped[date] = mapped_column(Date, nullable=False)
    recipient_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
