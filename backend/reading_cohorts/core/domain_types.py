"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - CohortId, MemberId wrap ints — never pass a bare int where an id is meant
    - All valid states encoded as Enums — no raw string matching
    - A start date is either AnchoredStart (quarter-aligned) or LegacyStart
      (raw parsed date kept verbatim); it is decided once, by date_anchor.resolve_start

Design Decisions:
    - NewType over dataclass wrappers for ids: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and bind to String columns via .value
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import NewType, Union


# ─── Identity Types ──────────────────────────────────────────────

CohortId = NewType("CohortId", int)
MemberId = NewType("MemberId", int)


# ─── Enums ───────────────────────────────────────────────────────

class CohortStatus(str, Enum):
    """Cohort lifecycle states — maps to DB `status` column.

    Order matters: upcoming -> active -> closed -> completed, no skips.
    """
    UPCOMING = "upcoming"
    ACTIVE = "active"
    CLOSED = "closed"
    COMPLETED = "completed"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class MemberRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class NotificationKind(str, Enum):
    """Notification kinds — part of the (cohort, kind, day) dedupe key."""
    WELCOME = "welcome"
    INVITATION_REMINDER = "invitation-reminder"


class MessageType(str, Enum):
    """Group-visible post categories."""
    ENCOURAGEMENT = "encouragement"
    REMINDER = "reminder"
    ANNOUNCEMENT = "announcement"
    MILESTONE = "milestone"


class EnrollmentOutcome(str, Enum):
    """Every way an enrollment request can end. Only some are successes."""
    ENROLLED = "enrolled"
    ALREADY_MEMBER = "already_member"
    REMOVED = "removed"
    COHORT_FULL = "cohort_full"
    NO_OPEN_COHORT = "no_open_cohort"
    NOT_FOUND = "not_found"


# ─── Start Date Variants ─────────────────────────────────────────

@dataclass(frozen=True)
class AnchoredStart:
    """Start date aligned to a quarter anchor (Jan/Apr/Jul/Oct 1st)."""
    value: date

    @property
    def is_legacy(self) -> bool:
        return False


@dataclass(frozen=True)
class LegacyStart:
    """Pre-cutoff start date, preserved exactly as parsed."""
    value: date

    @property
    def is_legacy(self) -> bool:
        return True


StartDate = Union[AnchoredStart, LegacyStart]


# ─── Value Objects ───────────────────────────────────────────────

@dataclass(frozen=True)
class CohortDates:
    """The three dates every cohort carries, derived from a single start."""
    start_date: date
    end_date: date
    registration_deadline: date
    is_legacy: bool = False


@dataclass(frozen=True)
class RenderedMessage:
    """A message ready for a transport: subject line plus plain-text body."""
    subject: str
    body: str


@dataclass(frozen=True)
class Recipient:
    """Who a notification email goes to."""
    member_id: MemberId
    name: str
    email: str


@dataclass(frozen=True)
class SendOutcome:
    """Result of one MailTransport.send call."""
    success: bool
    reason: str | None = None
    permanent: bool = False
