"""Cohort Admin — create, edit, order and maintain cohorts; manage rosters.

Invariants:
    - Every route requires the admin token (router-level dependency)
    - Date parsing, naming and transitions happen in the lifecycle service; routes
      only translate between schemas and service calls
    - Fixed paths (sort-order, normalize, seed-baseline) are declared before
      the /{cohort_id} routes
"""

import logging

from fastapi import APIRouter, Depends, status

from reading_cohorts.api.dependencies import get_lifecycle, require_admin
from reading_cohorts.api.routes.enrollment import result_or_raise
from reading_cohorts.config import get_settings
from reading_cohorts.core.domain_types import CohortId, MemberId
from reading_cohorts.schemas.cohort import (
    CohortCreate, CohortResponse, CohortUpdate, CohortWithCountResponse,
    NormalizeResponse, SeedBaselineResponse, SortOrderRequest,
)
from reading_cohorts.schemas.enrollment import EnrollmentResponse
from reading_cohorts.schemas.member import AdminEnrollRequest, CohortMemberResponse
from reading_cohorts.services.cohort_lifecycle import CohortLifecycle

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/admin/cohorts", tags=["admin-cohorts"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=list[CohortWithCountResponse])
async def list_cohorts(lifecycle: CohortLifecycle = Depends(get_lifecycle)):
    """All cohorts with active member counts, manual order first, then newest."""
    return [
        CohortWithCountResponse(
            **CohortResponse.model_validate(cohort).model_dump(), member_count=count,
        )
        for cohort, count in await lifecycle.list_cohorts_with_counts()
    ]


@router.post("", response_model=CohortResponse, status_code=status.HTTP_201_CREATED)
async def create_cohort(
    body: CohortCreate, lifecycle: CohortLifecycle = Depends(get_lifecycle),
):
    cohort = await lifecycle.create_cohort(
        body.start_date,
        capacity=body.capacity,
        status=body.status,
        name=body.name,
        chat_invite_url=body.chat_invite_url,
        reading_plan_url=body.reading_plan_url,
    )
    return CohortResponse.model_validate(cohort)


# ─── Maintenance ─────────────────────────────────────────────────

@router.post("/sort-order", status_code=status.HTTP_204_NO_CONTENT)
async def set_sort_order(
    body: SortOrderRequest, lifecycle: CohortLifecycle = Depends(get_lifecycle),
):
    await lifecycle.set_sort_order([CohortId(i) for i in body.cohort_ids])


@router.post("/sort-order/clear", status_code=status.HTTP_204_NO_CONTENT)
async def clear_sort_order(
    body: SortOrderRequest, lifecycle: CohortLifecycle = Depends(get_lifecycle),
):
    await lifecycle.clear_sort_order([CohortId(i) for i in body.cohort_ids])


@router.post("/normalize", response_model=NormalizeResponse)
async def normalize_cohorts(lifecycle: CohortLifecycle = Depends(get_lifecycle)):
    """Re-derive aligned dates and names; reports how many rows changed."""
    return NormalizeResponse(updated=await lifecycle.normalize_all())


@router.post("/seed-baseline", response_model=SeedBaselineResponse)
async def seed_baseline(lifecycle: CohortLifecycle = Depends(get_lifecycle)):
    settings = get_settings()
    created = await lifecycle.ensure_baseline_cohorts(
        settings.baseline_past_quarters, settings.baseline_future_quarters,
    )
    return SeedBaselineResponse(created=created)


# ─── Single Cohort ───────────────────────────────────────────────

@router.get("/{cohort_id}", response_model=CohortResponse)
async def get_cohort(cohort_id: int, lifecycle: CohortLifecycle = Depends(get_lifecycle)):
    return CohortResponse.model_validate(
        await lifecycle.get_cohort_or_raise(CohortId(cohort_id)),
    )


@router.patch("/{cohort_id}", response_model=CohortResponse)
async def update_cohort(
    cohort_id: int, body: CohortUpdate,
    lifecycle: CohortLifecycle = Depends(get_lifecycle),
):
    cohort = await lifecycle.update_cohort(
        CohortId(cohort_id), body.model_dump(exclude_unset=True),
    )
    return CohortResponse.model_validate(cohort)


@router.get("/{cohort_id}/members", response_model=list[CohortMemberResponse])
async def list_cohort_members(
    cohort_id: int, lifecycle: CohortLifecycle = Depends(get_lifecycle),
):
    return [
        CohortMemberResponse(
            member_id=member.id, name=member.name, email=member.email,
            join_date=membership.join_date, status=membership.status,
        )
        for membership, member in await lifecycle.list_members(CohortId(cohort_id))
    ]


@router.post("/{cohort_id}/members", response_model=EnrollmentResponse)
async def add_cohort_member(
    cohort_id: int, body: AdminEnrollRequest,
    lifecycle: CohortLifecycle = Depends(get_lifecycle),
):
    result = await lifecycle.admin_enroll(CohortId(cohort_id), MemberId(body.member_id))
    return result_or_raise(result, body.member_id, cohort_id)


@router.delete("/{cohort_id}/members/{member_id}", response_model=EnrollmentResponse)
async def remove_cohort_member(
    cohort_id: int, member_id: int,
    lifecycle: CohortLifecycle = Depends(get_lifecycle),
):
    result = await lifecycle.admin_remove(CohortId(cohort_id), MemberId(member_id))
    return result_or_raise(result, member_id, cohort_id)
