"""Notification Passes — welcome and invitation-reminder sweeps end to end on SQLite.

Tests cover:
    - Welcome posts once per cohort; a second run the same day is a no-op
    - No first-timers: no post and no record, so a later pass can still welcome
    - Reminder on day 7: one record, one post, one email per active member;
      re-running the same day sends nothing more
    - Reminder on a non-reminder day: no post, no record, no email
    - Email failures still write the record
    - A failing email-health lookup neither aborts the pass nor repeats the post
    - Legacy cohorts are never notified
"""

from datetime import date

from reading_cohorts.core.domain_types import CohortId, CohortStatus, MemberId, NotificationKind
from reading_cohorts.core.format_messages import WELCOME_TITLE
from reading_cohorts.infrastructure.message_log import SqlMessageBoard, SqlMessageLog

START = date(2026, 1, 1)


async def _active_cohort(services, start="2026-01-01"):
    return await services.lifecycle.create_cohort(start, status=CohortStatus.ACTIVE)


async def _join(services, cohort, *member_ids):
    for member_id in member_ids:
        await services.lifecycle.admin_enroll(CohortId(cohort.id), MemberId(member_id))


# ─── Welcome ─────────────────────────────────────────────────────

async def test_welcome_posts_once(services, make_member, test_db):
    cohort = await _active_cohort(services)
    await _join(services, cohort, await make_member("Anna"), await make_member("Ben"))

    first = await services.passes.run_welcome_pass(date(2026, 1, 2))
    second = await services.passes.run_welcome_pass(date(2026, 1, 2))

    assert (first, second) == (1, 0)
    posts = await SqlMessageBoard(test_db).list_posts(CohortId(cohort.id))
    assert [p.title for p in posts] == [WELCOME_TITLE]
    records = await SqlMessageLog(test_db).list_records(CohortId(cohort.id))
    assert [(r.kind, r.recipient_count) for r in records] == [("welcome", 2)]


async def test_welcome_not_repeated_on_later_days(services, make_member):
    cohort = await _active_cohort(services)
    await _join(services, cohort, await make_member("Anna"))
    await services.passes.run_welcome_pass(date(2026, 1, 2))
    assert await services.passes.run_welcome_pass(date(2026, 1, 3)) == 0


async def test_welcome_deferred_without_first_timers(services, make_member, test_db):
    earlier = await services.lifecycle.create_cohort("2025-10-01", status=CohortStatus.CLOSED)
    cohort = await _active_cohort(services)
    veteran = await make_member("Vera")
    await _join(services, earlier, veteran)
    await _join(services, cohort, veteran)

    assert await services.passes.run_welcome_pass(date(2026, 1, 2)) == 0
    assert not await SqlMessageLog(test_db).has_any_record(
        CohortId(cohort.id), NotificationKind.WELCOME,
    )

    await _join(services, cohort, await make_member("Nina"))
    assert await services.passes.run_welcome_pass(date(2026, 1, 3)) == 1


async def test_welcome_skips_cohort_not_yet_started(services, make_member):
    cohort = await services.lifecycle.create_cohort("2026-04-01", status=CohortStatus.ACTIVE)
    await _join(services, cohort, await make_member("Anna"))
    assert await services.passes.run_welcome_pass(date(2026, 3, 20)) == 0


async def test_legacy_cohort_never_welcomed(services, make_member):
    cohort = await services.lifecycle.create_cohort("2023-03-05", status=CohortStatus.ACTIVE)
    await _join(services, cohort, await make_member("Anna"))
    assert await services.passes.run_welcome_pass(date(2023, 3, 6)) == 0


# ─── Invitation Reminders ────────────────────────────────────────

async def test_day_seven_reminder_emails_every_member_once(services, make_member, mail, test_db):
    cohort = await _active_cohort(services)
    await _join(services, cohort, await make_member("Anna"), await make_member("Ben"))
    day_seven = date(2026, 1, 8)

    assert await services.passes.run_invitation_reminder_pass(day_seven) == 1
    assert await services.passes.run_invitation_reminder_pass(day_seven) == 0

    assert sorted(mail.sent_to) == ["anna@example.com", "ben@example.com"]
    records = await SqlMessageLog(test_db).list_records(CohortId(cohort.id))
    assert [(r.kind, r.day_bucket, r.recipient_count) for r in records] == [
        ("invitation-reminder", day_seven, 2),
    ]
    posts = await SqlMessageBoard(test_db).list_posts(CohortId(cohort.id))
    assert len(posts) == 1
    assert posts[0].message_type == "reminder"


async def test_no_reminder_on_other_days(services, make_member, mail, test_db):
    cohort = await _active_cohort(services)
    await _join(services, cohort, await make_member("Anna"))

    assert await services.passes.run_invitation_reminder_pass(date(2026, 1, 6)) == 0

    assert mail.sent == []
    assert await SqlMessageLog(test_db).list_records(CohortId(cohort.id)) == []
    assert await SqlMessageBoard(test_db).list_posts(CohortId(cohort.id)) == []


async def test_reminder_record_written_despite_failed_emails(services, make_member, mail, test_db):
    cohort = await _active_cohort(services)
    await _join(services, cohort, await make_member("Anna"), await make_member("Ben"))
    mail.fail.add("ben@example.com")

    assert await services.passes.run_invitation_reminder_pass(date(2026, 1, 4)) == 1

    assert mail.sent_to == ["anna@example.com"]
    assert await SqlMessageLog(test_db).has_record(
        CohortId(cohort.id), NotificationKind.INVITATION_REMINDER, date(2026, 1, 4),
    )


async def test_each_reminder_day_is_its_own_bucket(services, make_member, mail):
    cohort = await _active_cohort(services)
    await _join(services, cohort, await make_member("Anna"))

    for day in (4, 8, 12, 16):
        assert await services.passes.run_invitation_reminder_pass(date(2026, 1, day)) == 1

    assert len(mail.sent) == 4


async def test_reminder_email_contains_invite_link(services, make_member, mail):
    cohort = await services.lifecycle.create_cohort(
        "2026-01-01", status=CohortStatus.ACTIVE, chat_invite_url="https://chat.example/j",
    )
    await _join(services, cohort, await make_member("Anna"))

    await services.passes.run_invitation_reminder_pass(date(2026, 1, 8))

    assert "https://chat.example/j" in mail.sent[0][1].body


async def test_failing_health_lookup_does_not_abort_reminder(
    services, make_member, mail, test_db, monkeypatch,
):
    cohort = await _active_cohort(services)
    await _join(
        services, cohort,
        await make_member("Anna"), await make_member("Ben"), await make_member("Cara"),
    )
    health = services.dispatcher.health
    real_should_skip = health.should_skip

    async def flaky_should_skip(recipient):
        if recipient == "ben@example.com":
            raise ConnectionError("health store unavailable")
        return await real_should_skip(recipient)

    monkeypatch.setattr(health, "should_skip", flaky_should_skip)
    day_seven = date(2026, 1, 8)

    assert await services.passes.run_invitation_reminder_pass(day_seven) == 1
    assert await services.passes.run_invitation_reminder_pass(day_seven) == 0

    assert sorted(mail.sent_to) == ["anna@example.com", "ben@example.com", "cara@example.com"]
    assert len(await SqlMessageBoard(test_db).list_posts(CohortId(cohort.id))) == 1
    records = await SqlMessageLog(test_db).list_records(CohortId(cohort.id))
    assert [(r.day_bucket, r.recipient_count) for r in records] == [(day_seven, 3)]
