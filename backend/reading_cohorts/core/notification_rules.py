"""Notification Rules — when each notification kind is due, and how recipients are batched.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Welcome is due for active cohorts that have started (start <= today)
    - Invitation reminders are due only on day offsets in reminder_days (default 3/7/11/15),
      only while the cohort is active and today <= registration deadline
    - Legacy cohorts never trigger notifications
"""

from datetime import date
from typing import Iterator, Sequence, TypeVar

from reading_cohorts.core.date_anchor import day_offset
from reading_cohorts.core.domain_types import CohortStatus
from reading_cohorts.core.repository_protocols import CohortLike

DEFAULT_REMINDER_DAYS = (3, 7, 11, 15)

T = TypeVar("T")


def welcome_due(cohort: CohortLike, today: date) -> bool:
    return (
        not cohort.is_legacy
        and CohortStatus(cohort.status) == CohortStatus.ACTIVE
        and cohort.start_date <= today
    )


def reminder_day(
    cohort: CohortLike, today: date,
    reminder_days: Sequence[int] = DEFAULT_REMINDER_DAYS,
) -> int | None:
    """The day offset if an invitation reminder is due today, else None."""
    if cohort.is_legacy or CohortStatus(cohort.status) != CohortStatus.ACTIVE:
        return None
    if today > cohort.registration_deadline:
        return None
    offset = day_offset(cohort.start_date, today)
    return offset if offset in reminder_days else None


def days_left_to_register(cohort: CohortLike, today: date) -> int:
    return max(0, (cohort.registration_deadline - today).days)


def batched(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Fixed-size chunks in order; the last chunk may be short."""
    if size <= 0:
        raise ValueError("batch size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])
