"""Cohort Store — SQLAlchemy implementation of the CohortRepository protocol.

Invariants:
    - Plain reads and writes only; no date comparisons or capacity rules live here
      (the single exception is the locked count-then-insert, which only compares
      a count against the capacity it is handed)
    - Every write commits; callers never see half-applied rows
    - Status values are written as plain strings (Enum.value)

Design Decisions:
    - insert_membership_within_capacity locks the cohort row (SELECT ... FOR UPDATE)
      before counting, so concurrent joins serialize on databases with row locks;
      SQLite ignores the lock clause and relies on its single-writer model
    - First-timer detection is a NOT EXISTS anti-join on earlier-starting cohorts,
      using the target cohort's start date as the cutoff
"""

import logging
from datetime import date
from typing import Iterable

from sqlalchemy import and_, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from reading_cohorts.core.domain_types import (
    CohortId, CohortStatus, MemberId, MembershipStatus, Recipient,
)
from reading_cohorts.models.cohort import Cohort
from reading_cohorts.models.member import Member
from reading_cohorts.models.membership import Membership

logger = logging.getLogger(__name__)

_ACTIVE = MembershipStatus.ACTIVE.value


class SqlCohortRepository:
    """Cohort and membership persistence over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Cohorts ─────────────────────────────────────────────────

    async def insert_cohort(self, fields: dict) -> CohortId:
        cohort = Cohort(**fields)
        self.db.add(cohort)
        await self.db.commit()
        await self.db.refresh(cohort)
        return CohortId(cohort.id)

    async def get_cohort(self, cohort_id: CohortId) -> Cohort | None:
        result = await self.db.execute(select(Cohort).where(Cohort.id == cohort_id))
        return result.scalar_one_or_none()

    async def list_cohorts(
        self,
        statuses: Iterable[CohortStatus] | None = None,
        include_legacy: bool = True,
        newest_first: bool = False,
    ) -> list[Cohort]:
        query = select(Cohort)
        if statuses is not None:
            query = query.where(
                Cohort.status.in_([CohortStatus(s).value for s in statuses]),
            )
        if not include_legacy:
            query = query.where(Cohort.is_legacy.is_(False))
        order = Cohort.start_date.desc() if newest_first else Cohort.start_date.asc()
        query = query.order_by(order, Cohort.id.asc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def latest_cohort(self) -> Cohort | None:
        """Latest non-legacy cohort by start date."""
        result = await self.db.execute(
            select(Cohort)
            .where(Cohort.is_legacy.is_(False))
            .order_by(Cohort.start_date.desc(), Cohort.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def count_cohorts(self) -> int:
        result = await self.db.execute(select(func.count(Cohort.id)))
        return int(result.scalar_one())

    async def update_cohort(self, cohort_id: CohortId, fields: dict) -> None:
        if not fields:
            return
        await self.db.execute(
            update(Cohort).where(Cohort.id == cohort_id).values(**fields),
        )
        await self.db.commit()

    async def set_sort_ranks(self, ranks: dict[CohortId, int | None]) -> None:
        for cohort_id, rank in ranks.items():
            await self.db.execute(
                update(Cohort).where(Cohort.id == cohort_id).values(sort_rank=rank),
            )
        await self.db.commit()

    async def list_cohorts_with_counts(self) -> list[tuple[Cohort, int]]:
        """All cohorts with active member counts, manual rank first, then newest."""
        member_count = (
            select(func.count(Membership.id))
            .where(Membership.cohort_id == Cohort.id)
            .where(Membership.status == _ACTIVE)
            .correlate(Cohort)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(Cohort, member_count.label("member_count"))
            .order_by(
                Cohort.sort_rank.is_(None).asc(),
                Cohort.sort_rank.asc(),
                Cohort.start_date.desc(),
            )
        )
        return [(row[0], int(row[1])) for row in result.all()]

    # ─── Members & Memberships ───────────────────────────────────

    async def get_member(self, member_id: MemberId) -> Member | None:
        result = await self.db.execute(select(Member).where(Member.id == member_id))
        return result.scalar_one_or_none()

    async def get_member_by_email(self, email: str) -> Member | None:
        result = await self.db.execute(select(Member).where(Member.email == email))
        return result.scalar_one_or_none()

    async def insert_member(self, name: str, email: str, role: str) -> Member:
        member = Member(name=name, email=email, role=role)
        self.db.add(member)
        await self.db.commit()
        await self.db.refresh(member)
        return member

    async def insert_membership_within_capacity(
        self, cohort_id: CohortId, member_id: MemberId, join_date: date, capacity: int,
    ) -> bool:
        """Count and insert inside one transaction holding the cohort row lock."""
        await self.db.execute(
            select(Cohort.id).where(Cohort.id == cohort_id).with_for_update(),
        )
        active = await self.count_active_members(cohort_id)
        if active >= capacity:
            # release the row lock; nothing was written
            await self.db.commit()
            return False
        self.db.add(Membership(
            cohort_id=cohort_id, member_id=member_id,
            join_date=join_date, status=_ACTIVE,
        ))
        await self.db.commit()
        return True

    async def deactivate_membership(self, cohort_id: CohortId, member_id: MemberId) -> None:
        await self.db.execute(
            update(Membership)
            .where(Membership.cohort_id == cohort_id)
            .where(Membership.member_id == member_id)
            .where(Membership.status == _ACTIVE)
            .values(status=MembershipStatus.INACTIVE.value)
        )
        await self.db.commit()

    async def count_active_members(self, cohort_id: CohortId) -> int:
        result = await self.db.execute(
            select(func.count(Membership.id))
            .where(Membership.cohort_id == cohort_id)
            .where(Membership.status == _ACTIVE)
        )
        return int(result.scalar_one())

    async def get_active_membership(
        self, cohort_id: CohortId, member_id: MemberId,
    ) -> Membership | None:
        result = await self.db.execute(
            select(Membership)
            .where(Membership.cohort_id == cohort_id)
            .where(Membership.member_id == member_id)
            .where(Membership.status == _ACTIVE)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_active_recipients(self, cohort_id: CohortId) -> list[Recipient]:
        result = await self.db.execute(
            select(Member.id, Member.name, Member.email)
            .join(Membership, Membership.member_id == Member.id)
            .where(Membership.cohort_id == cohort_id)
            .where(Membership.status == _ACTIVE)
            .order_by(Membership.join_date.asc(), Membership.id.asc())
        )
        return [
            Recipient(member_id=MemberId(row.id), name=row.name, email=row.email)
            for row in result.all()
        ]

    async def list_first_timers(self, cohort_id: CohortId) -> list[Recipient]:
        """Active members with no membership in any earlier-starting cohort."""
        cutoff = select(Cohort.start_date).where(Cohort.id == cohort_id).scalar_subquery()
        earlier = aliased(Membership)
        earlier_cohort = aliased(Cohort)
        prior_membership = exists().where(
            and_(
                earlier.member_id == Membership.member_id,
                earlier.cohort_id != cohort_id,
                earlier.cohort_id == earlier_cohort.id,
                earlier_cohort.start_date < cutoff,
            )
        )
        result = await self.db.execute(
            select(Member.id, Member.name, Member.email)
            .join(Membership, Membership.member_id == Member.id)
            .where(Membership.cohort_id == cohort_id)
            .where(Membership.status == _ACTIVE)
            .where(~prior_membership)
            .order_by(Membership.join_date.asc(), Membership.id.asc())
        )
        return [
            Recipient(member_id=MemberId(row.id), name=row.name, email=row.email)
            for row in result.all()
        ]

    async def list_active_members(self, cohort_id: CohortId) -> list[tuple[Membership, Member]]:
        result = await self.db.execute(
            select(Membership, Member)
            .join(Member, Membership.member_id == Member.id)
            .where(Membership.cohort_id == cohort_id)
            .where(Membership.status == _ACTIVE)
            .order_by(Membership.join_date.asc(), Membership.id.asc())
        )
        return [(row[0], row[1]) for row in result.all()]
