"""Message Log & Board — dedupe records keyed on (cohort, kind, day).

Tests cover:
    - has_record matches the exact key only
    - write_record is idempotent for the same key
    - has_any_record ignores the day
    - posts are stored with type and author
"""

from datetime import date

from reading_cohorts.core.cohort_rules import CohortPolicy, plan_new_cohort
from reading_cohorts.core.domain_types import NotificationKind
from reading_cohorts.infrastructure.cohort_store import SqlCohortRepository
from reading_cohorts.infrastructure.message_log import SqlMessageBoard, SqlMessageLog

DAY = date(2026, 1, 8)
REMINDER = NotificationKind.INVITATION_REMINDER


async def _cohort_id(test_db):
    return await SqlCohortRepository(test_db).insert_cohort(
        plan_new_cohort("2026-01-01", CohortPolicy()),
    )


async def test_record_key_is_cohort_kind_and_day(test_db):
    cohort_id = await _cohort_id(test_db)
    log = SqlMessageLog(test_db)
    await log.write_record(cohort_id, REMINDER, DAY, 4)

    assert await log.has_record(cohort_id, REMINDER, DAY)
    assert not await log.has_record(cohort_id, REMINDER, date(2026, 1, 12))
    assert not await log.has_record(cohort_id, NotificationKind.WELCOME, DAY)


async def test_write_record_twice_keeps_one_row(test_db):
    cohort_id = await _cohort_id(test_db)
    log = SqlMessageLog(test_db)
    await log.write_record(cohort_id, REMINDER, DAY, 4)
    await log.write_record(cohort_id, REMINDER, DAY, 9)

    records = await log.list_records(cohort_id)
    assert len(records) == 1
    assert records[0].recipient_count == 4


async def test_has_any_record_ignores_day(test_db):
    cohort_id = await _cohort_id(test_db)
    log = SqlMessageLog(test_db)
    assert not await log.has_any_record(cohort_id, NotificationKind.WELCOME)
    await log.write_record(cohort_id, NotificationKind.WELCOME, DAY, 2)
    assert await log.has_any_record(cohort_id, NotificationKind.WELCOME)


async def test_board_post_is_listed(test_db):
    cohort_id = await _cohort_id(test_db)
    board = SqlMessageBoard(test_db)
    post_id = await board.post(cohort_id, "Hello", "Body", "announcement", None)

    posts = await board.list_posts(cohort_id)
    assert [p.id for p in posts] == [post_id]
    assert posts[0].message_type == "announcement"
    assert posts[0].author_id is None
