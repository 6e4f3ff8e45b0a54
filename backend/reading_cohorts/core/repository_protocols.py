"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, ORM rows satisfy CohortLike directly
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these protocols are never async themselves —
      the services orchestrate the async calls around the pure logic
"""

from datetime import date, datetime
from typing import Iterable, Protocol

from reading_cohorts.core.domain_types import (
    CohortId, CohortStatus, MemberId, NotificationKind,
    Recipient, RenderedMessage, SendOutcome,
)


class CohortLike(Protocol):
    """Structural contract for cohort rows passed into core rules."""
    id: int
    name: str
    start_date: date
    end_date: date
    registration_deadline: date
    capacity: int
    status: str
    is_legacy: bool
    sort_rank: int | None
    chat_invite_url: str | None
    reading_plan_url: str | None


class MembershipLike(Protocol):
    id: int
    cohort_id: int
    member_id: int
    join_date: date
    status: str
    completed_at: datetime | None


class MemberLike(Protocol):
    id: int
    name: str
    email: str
    role: str


class CohortRepository(Protocol):
    """Contract for cohort and membership persistence — implemented by shell."""
    async def insert_cohort(self, fields: dict) -> CohortId: ...
    async def get_cohort(self, cohort_id: CohortId) -> CohortLike | None: ...
    async def list_cohorts(
        self,
        statuses: Iterable[CohortStatus] | None = None,
        include_legacy: bool = True,
        newest_first: bool = False,
    ) -> list[CohortLike]: ...
    async def latest_cohort(self) -> CohortLike | None: ...
    async def count_cohorts(self) -> int: ...
    async def update_cohort(self, cohort_id: CohortId, fields: dict) -> None: ...
    async def set_sort_ranks(self, ranks: dict[CohortId, int | None]) -> None: ...
    async def list_cohorts_with_counts(self) -> list[tuple[CohortLike, int]]: ...

    async def get_member(self, member_id: MemberId) -> MemberLike | None: ...
    async def get_member_by_email(self, email: str) -> MemberLike | None: ...
    async def insert_member(self, name: str, email: str, role: str) -> MemberLike: ...
    async def insert_membership_within_capacity(
        self, cohort_id: CohortId, member_id: MemberId, join_date: date, capacity: int,
    ) -> bool: ...
    async def deactivate_membership(self, cohort_id: CohortId, member_id: MemberId) -> None: ...
    async def count_active_members(self, cohort_id: CohortId) -> int: ...
    async def get_active_membership(
        self, cohort_id: CohortId, member_id: MemberId,
    ) -> MembershipLike | None: ...
    async def list_active_recipients(self, cohort_id: CohortId) -> list[Recipient]: ...
    async def list_first_timers(self, cohort_id: CohortId) -> list[Recipient]: ...
    async def list_active_members(
        self, cohort_id: CohortId,
    ) -> list[tuple[MembershipLike, MemberLike]]: ...


class MessageLog(Protocol):
    """Contract for the notification dedupe log — key is (cohort, kind, day_bucket)."""
    async def has_record(
        self, cohort_id: CohortId, kind: NotificationKind, day_bucket: date,
    ) -> bool: ...
    async def has_any_record(self, cohort_id: CohortId, kind: NotificationKind) -> bool: ...
    async def write_record(
        self, cohort_id: CohortId, kind: NotificationKind, day_bucket: date,
        recipient_count: int,
    ) -> None: ...


class MessageBoard(Protocol):
    """Contract for group-visible posts."""
    async def post(
        self, cohort_id: CohortId, title: str, content: str,
        message_type: str, author_id: MemberId | None,
    ) -> int: ...


class MailTransport(Protocol):
    """Contract for outbound email. Never raises for delivery failures."""
    async def send(self, recipient: Recipient, message: RenderedMessage) -> SendOutcome: ...


class EmailHealth(Protocol):
    """Contract for per-recipient delivery health (skip-after-N-failures)."""
    async def should_skip(self, recipient: str) -> bool: ...
    async def record_outcome(
        self, recipient: str, success: bool,
        reason: str | None = None, permanent: bool = False,
    ) -> None: ...
