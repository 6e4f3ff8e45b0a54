"""Enrollment — member-facing open-cohort lookup and self-enrollment.

Invariants:
    - Successful outcomes (enrolled, already a member) return 200 with the result
    - Unsuccessful outcomes raise error_for_result (api/error_handlers.py): not found → 404,
      cohort full → 409, no open cohort → 409
    - result_or_raise is exported for the admin roster routes
"""

import logging

from fastapi import APIRouter, Depends

from reading_cohorts.api.dependencies import get_lifecycle
from reading_cohorts.api.error_handlers import error_for_result
from reading_cohorts.core.domain_types import MemberId
from reading_cohorts.core.enrollment import EnrollmentResult
from reading_cohorts.core.errors import NoOpenCohortError
from reading_cohorts.schemas.cohort import CohortResponse
from reading_cohorts.schemas.enrollment import EnrollmentResponse, EnrollRequest
from reading_cohorts.services.cohort_lifecycle import CohortLifecycle

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["enrollment"])


def result_or_raise(
    result: EnrollmentResult, member_id: int, cohort_id: int | None = None,
) -> EnrollmentResponse:
    """Return the response for a successful result; raise the matching error otherwise."""
    if result.success:
        return EnrollmentResponse(**result.to_dict())
    raise error_for_result(result, member_id, cohort_id)


@router.get("/cohorts/current", response_model=CohortResponse)
async def current_cohort(lifecycle: CohortLifecycle = Depends(get_lifecycle)):
    """The cohort new enrollments are routed to right now."""
    cohort = await lifecycle.get_current_open_cohort()
    if cohort is None:
        raise NoOpenCohortError("No cohorts are currently accepting registrations")
    return CohortResponse.model_validate(cohort)


@router.post("/enrollments", response_model=EnrollmentResponse)
async def enroll(body: EnrollRequest, lifecycle: CohortLifecycle = Depends(get_lifecycle)):
    result = await lifecycle.enroll(MemberId(body.member_id))
    return result_or_raise(result, body.member_id)
