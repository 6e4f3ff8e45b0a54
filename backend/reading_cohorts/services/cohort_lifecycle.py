"""Cohort Lifecycle — creation, status transitions, enrollment and admin maintenance.

Invariants:
    - Date/naming/state-machine decisions come from core/cohort_rules.py; this
      service only sequences repository calls around them
    - Transitions run in the fixed order upcoming->active, active->closed,
      closed->completed, each as an independent pass over the store, so a cohort
      may cascade through several steps in one call; re-running is a no-op
    - ensure_next_cohort_exists creates at most one cohort per call
    - enroll/admin_enroll/admin_remove return EnrollmentResult values; they raise
      only for infrastructure failures
    - Capacity check and insert share one locked transaction (see cohort_store)
"""

import logging
from datetime import date
from typing import Callable, Iterable

from reading_cohorts.core import cohort_rules
from reading_cohorts.core import enrollment as decisions
from reading_cohorts.core.cohort_rules import CohortPolicy
from reading_cohorts.core.date_anchor import utc_today
from reading_cohorts.core.domain_types import (
    CohortId, CohortStatus, MemberId, MemberRole,
)
from reading_cohorts.core.enrollment import EnrollmentResult
from reading_cohorts.core.errors import (
    ErrorContext, MemberExistsError, ResourceNotFoundError,
)
from reading_cohorts.core.repository_protocols import (
    CohortLike, CohortRepository, MemberLike, MembershipLike,
)
from reading_cohorts.models.cohort import Cohort

logger = logging.getLogger(__name__)


class CohortLifecycle:
    """Owns every write to cohorts and memberships."""

    def __init__(
        self,
        repo: CohortRepository,
        policy: CohortPolicy | None = None,
        clock: Callable[[], date] = utc_today,
    ):
        self.repo = repo
        self.policy = policy or CohortPolicy()
        self._clock = clock

    def today(self) -> date:
        return self._clock()

    # ─── Creation ────────────────────────────────────────────────

    async def create_cohort(
        self,
        start_date: str | date,
        capacity: int | None = None,
        status: CohortStatus = CohortStatus.UPCOMING,
        name: str | None = None,
        chat_invite_url: str | None = None,
        reading_plan_url: str | None = None,
    ) -> Cohort:
        fields = cohort_rules.plan_new_cohort(
            start_date, self.policy, capacity=capacity, status=status, name=name,
        )
        fields.update(chat_invite_url=chat_invite_url, reading_plan_url=reading_plan_url)
        cohort_id = await self.repo.insert_cohort(fields)
        logger.info(
            f"Created cohort '{fields['name']}' starting {fields['start_date']}",
            extra={"cohort_id": cohort_id},
        )
        return await self.repo.get_cohort(cohort_id)

    async def ensure_next_cohort_exists(self) -> Cohort | None:
        """Create the next quarterly cohort if one is due; None when nothing was created."""
        latest = await self.repo.latest_cohort()
        next_start = cohort_rules.plan_next_start(
            latest.start_date if latest else None, self.today(), self.policy,
        )
        if next_start is None:
            logger.info("Next cohort start is not in the future; nothing created")
            return None
        return await self.create_cohort(next_start)

    async def ensure_baseline_cohorts(
        self, past_quarters: int = 8, future_quarters: int = 2,
    ) -> int:
        """Seed consecutive quarterly cohorts around today when the store is empty."""
        if await self.repo.count_cohorts() > 0:
            return 0
        starts = cohort_rules.baseline_starts(self.today(), past_quarters, future_quarters)
        for start in starts:
            await self.create_cohort(start)
        await self.run_transitions()
        logger.info(f"Seeded {len(starts)} baseline cohorts")
        return len(starts)

    # ─── Status ──────────────────────────────────────────────────

    async def run_transitions(self) -> dict[str, int]:
        """Apply every due status transition; returns how many cohorts moved per target."""
        today = self.today()
        moved: dict[str, int] = {}
        for source, target, _ in cohort_rules.TRANSITIONS:
            count = 0
            for cohort in await self.repo.list_cohorts(statuses=[source], include_legacy=False):
                if cohort_rules.should_transition(cohort, source, today) == target:
                    await self.repo.update_cohort(cohort.id, {"status": target.value})
                    count += 1
            moved[target.value] = count
            if count:
                logger.info(f"{count} cohort(s) moved {source.value} -> {target.value}")
        return moved

    async def get_current_open_cohort(self) -> Cohort | None:
        """Earliest-starting cohort still accepting registrations."""
        today = self.today()
        candidates = await self.repo.list_cohorts(
            statuses=[CohortStatus.UPCOMING, CohortStatus.ACTIVE], include_legacy=False,
        )
        for cohort in candidates:
            if cohort_rules.is_open(cohort, today):
                return cohort
        return None

    async def has_active_cohort(self) -> bool:
        return bool(await self.repo.list_cohorts(
            statuses=[CohortStatus.ACTIVE], include_legacy=False,
        ))

    # ─── Enrollment ──────────────────────────────────────────────

    async def enroll(self, member_id: MemberId) -> EnrollmentResult:
        """Route a member into the currently open cohort."""
        if await self.repo.get_member(member_id) is None:
            return decisions.not_found("Member")
        cohort = await self.get_current_open_cohort()
        if cohort is None:
            cohort = await self.ensure_next_cohort_exists()
            if cohort is None:
                return decisions.no_open_cohort()
            await self.repo.update_cohort(cohort.id, {"status": CohortStatus.ACTIVE.value})
            logger.info("Activated newly created cohort for enrollment", extra={"cohort_id": cohort.id})
        return await self._join(cohort, member_id)

    async def admin_enroll(self, cohort_id: CohortId, member_id: MemberId) -> EnrollmentResult:
        cohort = await self.repo.get_cohort(cohort_id)
        if cohort is None:
            return decisions.not_found("Cohort")
        if await self.repo.get_member(member_id) is None:
            return decisions.not_found("Member", cohort_id)
        return await self._join(cohort, member_id)

    async def admin_remove(self, cohort_id: CohortId, member_id: MemberId) -> EnrollmentResult:
        if await self.repo.get_cohort(cohort_id) is None:
            return decisions.not_found("Cohort")
        if await self.repo.get_active_membership(cohort_id, member_id) is None:
            return decisions.not_found("Membership", cohort_id)
        await self.repo.deactivate_membership(cohort_id, member_id)
        logger.info("Membership deactivated", extra={"cohort_id": cohort_id, "member_id": member_id})
        return decisions.removed(cohort_id)

    async def _join(self, cohort: Cohort, member_id: MemberId) -> EnrollmentResult:
        cohort_id, capacity = CohortId(cohort.id), cohort.capacity
        existing = await self.repo.get_active_membership(cohort_id, member_id)
        active = await self.repo.count_active_members(cohort_id)
        blocked = decisions.check_capacity(cohort_id, active, capacity, existing is not None)
        if blocked is not None:
            return blocked
        inserted = await self.repo.insert_membership_within_capacity(
            cohort_id, member_id, self.today(), capacity,
        )
        if not inserted:
            return decisions.cohort_full(cohort_id)
        logger.info("Member enrolled", extra={"cohort_id": cohort_id, "member_id": member_id})
        return decisions.enrolled(cohort_id)

    # ─── Admin Edits ─────────────────────────────────────────────

    async def get_cohort_or_raise(self, cohort_id: CohortId) -> Cohort:
        cohort = await self.repo.get_cohort(cohort_id)
        if cohort is None:
            raise ResourceNotFoundError(
                "Cohort", str(cohort_id), ErrorContext(cohort_id=cohort_id),
            )
        return cohort

    async def update_cohort(self, cohort_id: CohortId, updates: dict) -> Cohort:
        cohort = await self.get_cohort_or_raise(cohort_id)
        changes = cohort_rules.plan_update(cohort, updates, self.policy)
        if changes:
            await self.repo.update_cohort(cohort_id, changes)
            logger.info(
                f"Cohort updated: {', '.join(sorted(changes))}", extra={"cohort_id": cohort_id},
            )
        return await self.repo.get_cohort(cohort_id)

    async def normalize_all(self) -> int:
        """Re-derive dates and names for every cohort; returns rows actually changed."""
        updated = 0
        for cohort in await self.repo.list_cohorts():
            changes = cohort_rules.plan_normalization(cohort, self.policy)
            if changes:
                await self.repo.update_cohort(cohort.id, changes)
                updated += 1
        logger.info(f"Normalized cohorts: {updated} updated")
        return updated

    async def set_sort_order(self, cohort_ids_in_order: Iterable[CohortId]) -> None:
        ordered = list(dict.fromkeys(cohort_ids_in_order))
        for cohort_id in ordered:
            await self.get_cohort_or_raise(cohort_id)
        await self.repo.set_sort_ranks(
            {cohort_id: rank for rank, cohort_id in enumerate(ordered, start=1)},
        )

    async def clear_sort_order(self, cohort_ids: Iterable[CohortId]) -> None:
        await self.repo.set_sort_ranks({cohort_id: None for cohort_id in cohort_ids})

    async def list_cohorts_with_counts(self) -> list[tuple[CohortLike, int]]:
        return await self.repo.list_cohorts_with_counts()

    async def list_members(
        self, cohort_id: CohortId,
    ) -> list[tuple[MembershipLike, MemberLike]]:
        await self.get_cohort_or_raise(cohort_id)
        return await self.repo.list_active_members(cohort_id)

    async def create_member(
        self, name: str, email: str, role: MemberRole = MemberRole.MEMBER,
    ) -> MemberLike:
        email = email.strip().lower()
        if await self.repo.get_member_by_email(email) is not None:
            raise MemberExistsError(email)
        return await self.repo.insert_member(name.strip(), email, MemberRole(role).value)
