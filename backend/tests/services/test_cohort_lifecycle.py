"""Cohort Lifecycle — creation, transitions and admin maintenance against SQLite.

Tests cover:
    - create_cohort aligns the start and names from the aligned month
    - run_transitions cascades, is idempotent, and leaves legacy cohorts alone
    - ensure_next_cohort_exists: bootstrap, next quarter, nothing when already past
    - get_current_open_cohort picks the earliest cohort still accepting registrations
    - update_cohort / normalize_all / sort order / baseline seeding / member creation
    - list_members returns (membership, member) pairs for the roster
"""

from datetime import date

import pytest

from reading_cohorts.core.domain_types import CohortId, CohortStatus, MemberId
from reading_cohorts.core.errors import (
    InvalidDateError, MemberExistsError, ResourceNotFoundError,
)


# ─── Creation ────────────────────────────────────────────────────

async def test_create_cohort_aligns_and_names(services):
    cohort = await services.lifecycle.create_cohort("02/14/2026")
    assert cohort.start_date == date(2026, 1, 1)
    assert cohort.name == "Bible Bus January 2026 Travelers"
    assert cohort.registration_deadline == date(2026, 1, 18)
    assert cohort.end_date == date(2026, 12, 31)
    assert cohort.capacity == 50
    assert cohort.status == "upcoming"


async def test_create_cohort_rejects_unparseable_date(services):
    with pytest.raises(InvalidDateError):
        await services.lifecycle.create_cohort("someday")
    assert await services.repo.count_cohorts() == 0


async def test_ensure_next_bootstraps_empty_store(services):
    cohort = await services.lifecycle.ensure_next_cohort_exists()
    assert cohort.start_date == date(2025, 10, 1)


async def test_ensure_next_adds_following_quarter(services, clock):
    clock.today = date(2025, 12, 20)
    await services.lifecycle.create_cohort("2025-10-01")
    cohort = await services.lifecycle.ensure_next_cohort_exists()
    assert cohort.start_date == date(2026, 1, 1)
    assert cohort.name == "Bible Bus January 2026 Travelers"


async def test_ensure_next_creates_nothing_when_next_start_passed(services):
    await services.lifecycle.create_cohort("2025-10-01")
    assert await services.lifecycle.ensure_next_cohort_exists() is None
    assert await services.repo.count_cohorts() == 1


# ─── Transitions ─────────────────────────────────────────────────

async def test_transitions_activate_started_cohort(services):
    started = await services.lifecycle.create_cohort("2026-01-01")
    future = await services.lifecycle.create_cohort("2026-04-01")

    moved = await services.lifecycle.run_transitions()

    assert moved == {"active": 1, "closed": 0, "completed": 0}
    assert (await services.repo.get_cohort(started.id)).status == "active"
    assert (await services.repo.get_cohort(future.id)).status == "upcoming"


async def test_old_cohort_cascades_to_completed_in_one_pass(services):
    old = await services.lifecycle.create_cohort("2024-01-01")

    moved = await services.lifecycle.run_transitions()

    assert moved == {"active": 1, "closed": 1, "completed": 1}
    assert (await services.repo.get_cohort(old.id)).status == "completed"


async def test_transitions_are_idempotent(services):
    await services.lifecycle.create_cohort("2026-01-01")
    await services.lifecycle.run_transitions()
    assert await services.lifecycle.run_transitions() == {
        "active": 0, "closed": 0, "completed": 0,
    }


async def test_legacy_cohort_never_transitions(services):
    legacy = await services.lifecycle.create_cohort("2022-06-15")
    await services.lifecycle.run_transitions()
    refreshed = await services.repo.get_cohort(legacy.id)
    assert refreshed.status == "upcoming"
    assert refreshed.is_legacy is True


async def test_current_open_cohort_is_earliest_accepting(services, clock):
    await services.lifecycle.create_cohort("2025-10-01", status=CohortStatus.CLOSED)
    current = await services.lifecycle.create_cohort("2026-01-01", status=CohortStatus.ACTIVE)
    await services.lifecycle.create_cohort("2026-04-01")

    assert (await services.lifecycle.get_current_open_cohort()).id == current.id

    clock.today = date(2026, 1, 19)
    later = await services.lifecycle.get_current_open_cohort()
    assert later.start_date == date(2026, 4, 1)


async def test_no_open_cohort_when_all_closed(services):
    await services.lifecycle.create_cohort("2025-10-01", status=CohortStatus.CLOSED)
    assert await services.lifecycle.get_current_open_cohort() is None


# ─── Admin Edits ─────────────────────────────────────────────────

async def test_update_start_date_regenerates_name(services):
    cohort = await services.lifecycle.create_cohort("2026-01-01")
    updated = await services.lifecycle.update_cohort(
        CohortId(cohort.id), {"start_date": "2026-07-20"},
    )
    assert updated.start_date == date(2026, 7, 1)
    assert updated.name == "Bible Bus July 2026 Travelers"
    assert updated.registration_deadline == date(2026, 7, 18)


async def test_update_keeps_explicit_name(services):
    cohort = await services.lifecycle.create_cohort("2026-01-01")
    updated = await services.lifecycle.update_cohort(
        CohortId(cohort.id), {"start_date": "2026-07-01", "name": "Summer Riders"},
    )
    assert updated.name == "Summer Riders"


async def test_update_unknown_cohort_raises(services):
    with pytest.raises(ResourceNotFoundError):
        await services.lifecycle.update_cohort(CohortId(999), {"capacity": 10})


async def test_normalize_all_on_clean_data_updates_nothing(services):
    await services.lifecycle.create_cohort("2026-01-01")
    await services.lifecycle.create_cohort("2026-04-01")
    assert await services.lifecycle.normalize_all() == 0


async def test_normalize_all_fixes_exactly_the_drifted_cohort(services):
    clean = await services.lifecycle.create_cohort("2026-01-01")
    drifted = await services.lifecycle.create_cohort("2026-04-01")
    await services.repo.update_cohort(
        CohortId(drifted.id), {"name": "April group", "start_date": date(2026, 5, 2)},
    )

    assert await services.lifecycle.normalize_all() == 1

    fixed = await services.repo.get_cohort(drifted.id)
    assert fixed.start_date == date(2026, 4, 1)
    assert fixed.name == "Bible Bus April 2026 Travelers"
    assert (await services.repo.get_cohort(clean.id)).name == "Bible Bus January 2026 Travelers"


async def test_sort_order_set_and_clear(services):
    a = await services.lifecycle.create_cohort("2025-10-01")
    b = await services.lifecycle.create_cohort("2026-01-01")

    await services.lifecycle.set_sort_order([CohortId(a.id), CohortId(b.id)])
    assert (await services.repo.get_cohort(a.id)).sort_rank == 1
    assert (await services.repo.get_cohort(b.id)).sort_rank == 2

    await services.lifecycle.clear_sort_order([CohortId(a.id)])
    assert (await services.repo.get_cohort(a.id)).sort_rank is None


async def test_sort_order_rejects_unknown_cohort(services):
    with pytest.raises(ResourceNotFoundError):
        await services.lifecycle.set_sort_order([CohortId(42)])


async def test_baseline_seeding_only_on_empty_store(services):
    created = await services.lifecycle.ensure_baseline_cohorts(past_quarters=2, future_quarters=1)
    assert created == 4

    cohorts = await services.repo.list_cohorts()
    assert [c.start_date for c in cohorts] == [
        date(2025, 7, 1), date(2025, 10, 1), date(2026, 1, 1), date(2026, 4, 1),
    ]
    assert [c.status for c in cohorts] == ["closed", "closed", "active", "upcoming"]

    assert await services.lifecycle.ensure_baseline_cohorts() == 0


async def test_create_member_rejects_duplicate_email(services):
    member = await services.lifecycle.create_member(" Anna ", "Anna@Example.com")
    assert member.email == "anna@example.com"
    assert member.name == "Anna"
    with pytest.raises(MemberExistsError):
        await services.lifecycle.create_member("Other", "anna@example.com")


async def test_list_members_pairs_membership_with_member(services):
    cohort = await services.lifecycle.create_cohort("2026-01-01")
    member = await services.lifecycle.create_member("Anna", "anna@example.com")
    await services.lifecycle.admin_enroll(CohortId(cohort.id), MemberId(member.id))

    rows = await services.lifecycle.list_members(CohortId(cohort.id))

    assert [(m.status, p.email) for m, p in rows] == [("active", "anna@example.com")]
    assert rows[0][0].member_id == rows[0][1].id
