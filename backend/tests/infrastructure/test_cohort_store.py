"""Cohort Store — SQL repository behaviour against in-memory SQLite.

Tests cover:
    - list_cohorts filters by status and legacy flag, ordered by start
    - latest_cohort ignores legacy rows
    - insert_membership_within_capacity refuses when full and writes nothing
    - list_first_timers excludes members with an earlier-starting membership
    - list_cohorts_with_counts: manual rank first, then newest start
"""

from datetime import date

from reading_cohorts.core.cohort_rules import CohortPolicy, plan_new_cohort
from reading_cohorts.core.domain_types import CohortStatus, MemberId
from reading_cohorts.infrastructure.cohort_store import SqlCohortRepository


async def _cohort(repo, start, status=CohortStatus.UPCOMING, capacity=None):
    return await repo.insert_cohort(
        plan_new_cohort(start, CohortPolicy(), capacity=capacity, status=status),
    )


async def _member(repo, name):
    member = await repo.insert_member(name, f"{name.lower()}@example.com", "member")
    return MemberId(member.id)


async def _join(repo, cohort_id, member_id, join_date):
    assert await repo.insert_membership_within_capacity(cohort_id, member_id, join_date, 50)


async def test_list_cohorts_filters_status_and_legacy(test_db):
    repo = SqlCohortRepository(test_db)
    await _cohort(repo, "2026-04-01")
    active = await _cohort(repo, "2026-01-01", CohortStatus.ACTIVE)
    await _cohort(repo, "2022-03-10", CohortStatus.ACTIVE)

    rows = await repo.list_cohorts(statuses=[CohortStatus.ACTIVE], include_legacy=False)
    assert [c.id for c in rows] == [active]

    everything = await repo.list_cohorts()
    assert [c.start_date for c in everything] == [
        date(2022, 3, 10), date(2026, 1, 1), date(2026, 4, 1),
    ]


async def test_latest_cohort_skips_legacy(test_db):
    repo = SqlCohortRepository(test_db)
    newest = await _cohort(repo, "2026-07-01")
    await _cohort(repo, "2023-11-05")
    assert (await repo.latest_cohort()).id == newest


async def test_capacity_insert_refuses_when_full(test_db):
    repo = SqlCohortRepository(test_db)
    cohort_id = await _cohort(repo, "2026-01-01", capacity=1)
    anna = await _member(repo, "Anna")
    ben = await _member(repo, "Ben")

    assert await repo.insert_membership_within_capacity(cohort_id, anna, date(2026, 1, 2), 1)
    assert not await repo.insert_membership_within_capacity(cohort_id, ben, date(2026, 1, 2), 1)
    assert await repo.count_active_members(cohort_id) == 1
    assert await repo.get_active_membership(cohort_id, ben) is None


async def test_deactivate_membership_frees_a_seat(test_db):
    repo = SqlCohortRepository(test_db)
    cohort_id = await _cohort(repo, "2026-01-01")
    anna = await _member(repo, "Anna")
    await _join(repo, cohort_id, anna, date(2026, 1, 2))

    await repo.deactivate_membership(cohort_id, anna)

    assert await repo.count_active_members(cohort_id) == 0
    assert await repo.get_active_membership(cohort_id, anna) is None


async def test_first_timers_exclude_returning_members(test_db):
    repo = SqlCohortRepository(test_db)
    earlier = await _cohort(repo, "2025-10-01", CohortStatus.CLOSED)
    current = await _cohort(repo, "2026-01-01", CohortStatus.ACTIVE)
    later = await _cohort(repo, "2026-04-01")
    anna = await _member(repo, "Anna")
    ben = await _member(repo, "Ben")
    cara = await _member(repo, "Cara")
    await _join(repo, earlier, ben, date(2025, 10, 2))
    await _join(repo, later, cara, date(2026, 3, 1))
    for member in (anna, ben, cara):
        await _join(repo, current, member, date(2026, 1, 2))

    first_timers = await repo.list_first_timers(current)

    assert {r.member_id for r in first_timers} == {anna, cara}


async def test_cohorts_with_counts_rank_then_newest(test_db):
    repo = SqlCohortRepository(test_db)
    old = await _cohort(repo, "2025-10-01")
    mid = await _cohort(repo, "2026-01-01")
    new = await _cohort(repo, "2026-04-01")
    await repo.set_sort_ranks({old: 1})
    await _join(repo, mid, await _member(repo, "Anna"), date(2026, 1, 2))

    rows = await repo.list_cohorts_with_counts()

    assert [c.id for c, _ in rows] == [old, new, mid]
    assert dict((c.id, n) for c, n in rows)[mid] == 1
