"""Member Admin — register members that can then be enrolled into cohorts."""

import logging

from fastapi import APIRouter, Depends, status

from reading_cohorts.api.dependencies import get_lifecycle, require_admin
from reading_cohorts.schemas.member import MemberCreate, MemberResponse
from reading_cohorts.services.cohort_lifecycle import CohortLifecycle

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/admin/members", tags=["admin-members"],
    dependencies=[Depends(require_admin)],
)


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def create_member(
    body: MemberCreate, lifecycle: CohortLifecycle = Depends(get_lifecycle),
):
    """Create a member; a duplicate email is a 409."""
    member = await lifecycle.create_member(body.name, body.email, body.role)
    return MemberResponse.model_validate(member)
