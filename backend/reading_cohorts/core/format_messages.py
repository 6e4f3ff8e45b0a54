"""Message Formatting — plain-text bodies for group posts and reminder emails.

Invariants:
    - Pure functions: cohort/recipient data in, RenderedMessage out
    - Plain text only; no HTML templating
"""

from datetime import date

from reading_cohorts.core.domain_types import Recipient, RenderedMessage
from reading_cohorts.core.repository_protocols import CohortLike

WELCOME_TITLE = "Welcome to Your Reading Journey!"

_WELCOME_BODY = (
    "Hello Travelers,\n\n"
    "We're so glad you've joined {name}! A few words of wisdom before you begin:\n"
    "- Set aside 15 minutes a day and commit to reading during that time.\n"
    "- First-timers, focus on the big picture and how the stories connect. "
    "Make a note of anything unclear; the answers often come in later chapters.\n"
    "- If you fall behind, don't stress. Stay with the current day's reading "
    "and catch up on the weekend.\n"
    "- You can listen instead of read, which helps when catching up.\n"
    "- The goal is to finish one day at a time. Keep going!"
)


def format_welcome_post(cohort: CohortLike, first_timer_count: int) -> RenderedMessage:
    body = _WELCOME_BODY.format(name=cohort.name)
    if first_timer_count:
        plural = "s" if first_timer_count != 1 else ""
        body += f"\n\nA special welcome to our {first_timer_count} first-time traveler{plural}."
    return RenderedMessage(subject=WELCOME_TITLE, body=body)


def format_reminder_post(cohort: CohortLike, day: int, days_left: int) -> RenderedMessage:
    return RenderedMessage(
        subject=f"Reminder: join the {cohort.name} group chat",
        body=(
            f"Day {day} of {cohort.name}. If you haven't joined the group chat yet, "
            f"please do so now. Registration closes on "
            f"{cohort.registration_deadline.isoformat()} ({days_left} days left)."
        ),
    )


def format_reminder_email(
    recipient: Recipient,
    cohort: CohortLike,
    invite_url: str | None,
    today: date,
    frontend_url: str | None = None,
) -> RenderedMessage:
    lines = [
        f"Hello {recipient.name},",
        "",
        f"You're enrolled in {cohort.name}, which started on "
        f"{cohort.start_date.isoformat()}.",
    ]
    if invite_url:
        lines += ["", f"Join your group chat here: {invite_url}"]
    else:
        lines += ["", "Your group chat link will be shared on your dashboard."]
    if frontend_url:
        lines += [f"Dashboard: {frontend_url.rstrip('/')}/dashboard"]
    lines += [
        "",
        f"Registration closes on {cohort.registration_deadline.isoformat()}.",
        f"Sent {today.isoformat()}.",
    ]
    return RenderedMessage(
        subject=f"Your {cohort.name} group is waiting for you",
        body="\n".join(lines),
    )
