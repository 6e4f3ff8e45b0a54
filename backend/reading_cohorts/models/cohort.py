"""Cohort ORM — persists the aggregate root: one quarterly reading group.

Invariants:
    - end_date = start_date + 1 year - 1 day
    - registration_deadline = start_date + 17 days
    - start_date is a quarter anchor unless is_legacy
    - status transitions: upcoming -> active -> closed -> completed (core/cohort_rules.py)
    - rows are never hard-deleted by the engine

Design Decisions:
    - is_legacy stored, not recomputed: the Anchored/Legacy decision is made once at write time
    - sort_rank nullable: admin ordering is opt-in, unranked cohorts sort last
"""

from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reading_cohorts.db.base import Base


class Cohort(Base):
    """Cohort aggregate root — owns memberships, posts and notification records."""
    __tablename__ = "cohorts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    registration_deadline: Mapped[date] = mapped_column(Date, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="upcoming", index=True,
    )
    is_legacy: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    chat_invite_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    reading_plan_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    memberships: Mapped[list["Membership"]] = relationship(
        "Membership", back_populates="cohort", cascade="all, delete-orphan",
    )
