"""Cohort Rules — the status state machine and the pure half of every cohort write.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Transitions never skip a state: upcoming -> active -> closed -> completed
    - Transitions depend only on dates compared with `today`
    - Legacy cohorts are never moved by the automatic transitions
    - plan_* functions return the field dict to persist; an empty dict means "no change"

Design Decisions:
    - Transition table as ordered tuple: the service applies it front to back so a
      cohort whose dates are far in the past cascades through every step in one pass
    - CohortPolicy carries tunables (naming, window, cutoff) so core never reads settings
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable

from reading_cohorts.core.date_anchor import (
    LEGACY_CUTOFF_YEAR, REGISTRATION_WINDOW_DAYS,
    add_months, align_date, cohort_dates, cohort_name, resolve_start,
)
from reading_cohorts.core.domain_types import CohortStatus, StartDate
from reading_cohorts.core.errors import InvalidCohortUpdateError, InvalidDateError
from reading_cohorts.core.repository_protocols import CohortLike

QUARTER_MONTHS = 3


@dataclass(frozen=True)
class CohortPolicy:
    """Tunables for cohort creation, naming and date derivation."""
    program_name: str = "Bible Bus"
    name_suffix: str = "Travelers"
    default_capacity: int = 50
    registration_window_days: int = REGISTRATION_WINDOW_DAYS
    legacy_cutoff_year: int = LEGACY_CUTOFF_YEAR
    bootstrap_start_date: str = "2025-10-01"

    def name_for(self, start: date) -> str:
        return cohort_name(start, self.program_name, self.name_suffix)


# ─── State Machine ───────────────────────────────────────────────

def _started(cohort: CohortLike, today: date) -> bool:
    return today >= cohort.start_date


def _registration_passed(cohort: CohortLike, today: date) -> bool:
    return today > cohort.registration_deadline


def _ended(cohort: CohortLike, today: date) -> bool:
    return today > cohort.end_date


TRANSITIONS: tuple[
    tuple[CohortStatus, CohortStatus, Callable[[CohortLike, date], bool]], ...
] = (
    (CohortStatus.UPCOMING, CohortStatus.ACTIVE, _started),
    (CohortStatus.ACTIVE, CohortStatus.CLOSED, _registration_passed),
    (CohortStatus.CLOSED, CohortStatus.COMPLETED, _ended),
)


def should_transition(
    cohort: CohortLike, source: CohortStatus, today: date,
) -> CohortStatus | None:
    """Target status if `cohort` (currently `source`) qualifies today, else None."""
    if cohort.is_legacy or CohortStatus(cohort.status) != source:
        return None
    for from_status, to_status, predicate in TRANSITIONS:
        if from_status == source:
            return to_status if predicate(cohort, today) else None
    return None


def is_open(cohort: CohortLike, today: date) -> bool:
    """Accepting registrations: upcoming/active, deadline not passed, not legacy."""
    return (
        not cohort.is_legacy
        and CohortStatus(cohort.status) in (CohortStatus.UPCOMING, CohortStatus.ACTIVE)
        and cohort.registration_deadline >= today
    )


# ─── Creation Planning ───────────────────────────────────────────

def resolve_or_raise(raw: str | date, policy: CohortPolicy) -> StartDate:
    start = resolve_start(raw, policy.legacy_cutoff_year)
    if start is None:
        raise InvalidDateError(str(raw))
    return start


def plan_new_cohort(
    raw_start: str | date,
    policy: CohortPolicy,
    capacity: int | None = None,
    status: CohortStatus = CohortStatus.UPCOMING,
    name: str | None = None,
) -> dict:
    """Field dict for a new cohort row."""
    start = resolve_or_raise(raw_start, policy)
    dates = cohort_dates(start, policy.registration_window_days)
    capacity = policy.default_capacity if capacity is None else capacity
    if capacity <= 0:
        raise InvalidCohortUpdateError("capacity must be positive", "capacity")
    explicit = name.strip() if name else ""
    return {
        "name": explicit or policy.name_for(dates.start_date),
        "start_date": dates.start_date,
        "end_date": dates.end_date,
        "registration_deadline": dates.registration_deadline,
        "capacity": capacity,
        "status": CohortStatus(status).value,
        "is_legacy": dates.is_legacy,
    }


def plan_next_start(last_start: date | None, today: date, policy: CohortPolicy) -> date | None:
    """Start date of the cohort to auto-create, or None if nothing should be created.

    No cohorts at all -> the bootstrap start. Otherwise one quarter after the
    latest start, but only while that date is still in the future.
    """
    if last_start is None:
        return resolve_or_raise(policy.bootstrap_start_date, policy).value
    candidate = add_months(last_start, QUARTER_MONTHS)
    if candidate > today:
        return candidate
    return None


def baseline_starts(today: date, past_quarters: int, future_quarters: int) -> list[date]:
    """Consecutive quarter anchors from `past_quarters` back to `future_quarters` ahead."""
    current = align_date(today)
    first = add_months(current, -QUARTER_MONTHS * past_quarters)
    return [
        add_months(first, QUARTER_MONTHS * i)
        for i in range(past_quarters + future_quarters + 1)
    ]


# ─── Update Planning ─────────────────────────────────────────────

UPDATABLE_FIELDS = frozenset({
    "name", "status", "start_date", "capacity",
    "chat_invite_url", "reading_plan_url",
})


def plan_update(cohort: CohortLike, updates: dict, policy: CohortPolicy) -> dict:
    """Fields to write for an admin edit of any subset of UPDATABLE_FIELDS.

    A new start date re-derives end/deadline and, unless a name is supplied in
    the same call, regenerates the name from the new month and year.
    """
    unknown = set(updates) - UPDATABLE_FIELDS
    if unknown:
        raise InvalidCohortUpdateError(
            f"Unsupported fields: {', '.join(sorted(unknown))}", sorted(unknown)[0],
        )
    changes: dict = {}

    name = updates.get("name")
    explicit_name = name.strip() if isinstance(name, str) else ""
    if explicit_name:
        changes["name"] = explicit_name

    if updates.get("status") is not None:
        try:
            changes["status"] = CohortStatus(updates["status"]).value
        except ValueError:
            raise InvalidCohortUpdateError(
                f"Unknown status '{updates['status']}'", "status",
            )

    if updates.get("capacity") is not None:
        if updates["capacity"] <= 0:
            raise InvalidCohortUpdateError("capacity must be positive", "capacity")
        changes["capacity"] = updates["capacity"]

    raw_start = updates.get("start_date")
    if raw_start is not None and str(raw_start).strip():
        start = resolve_or_raise(raw_start, policy)
        dates = cohort_dates(start, policy.registration_window_days)
        changes.update(
            start_date=dates.start_date,
            end_date=dates.end_date,
            registration_deadline=dates.registration_deadline,
            is_legacy=dates.is_legacy,
        )
        if not explicit_name:
            changes["name"] = policy.name_for(dates.start_date)

    for link in ("chat_invite_url", "reading_plan_url"):
        if link in updates:
            changes[link] = updates[link] or None

    return {
        key: value for key, value in changes.items()
        if getattr(cohort, key, None) != value
    }


def plan_normalization(cohort: CohortLike, policy: CohortPolicy) -> dict:
    """Fields that drifted from what the cohort's start date implies.

    Anchored cohorts are re-aligned; legacy cohorts keep their start verbatim but
    still get end/deadline/name recomputed. Unparseable starts are left alone.
    """
    start = resolve_start(cohort.start_date, policy.legacy_cutoff_year)
    if start is None:
        return {}
    dates = cohort_dates(start, policy.registration_window_days)
    expected = {
        "name": policy.name_for(dates.start_date),
        "start_date": dates.start_date,
        "end_date": dates.end_date,
        "registration_deadline": dates.registration_deadline,
        "is_legacy": dates.is_legacy,
    }
    return {
        key: value for key, value in expected.items()
        if getattr(cohort, key) != value
    }
