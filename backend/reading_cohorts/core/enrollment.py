"""Enrollment Decisions — pure checks behind enroll / admin_enroll / admin_remove.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - An existing active membership always wins: re-joining is a success, never "full"
    - Capacity is checked against the active-member count; count >= capacity is full
    - Conflicts and missing resources are result values, never exceptions

Design Decisions:
    - EnrollmentResult carries an outcome enum so the HTTP layer can tell
      "not found" from "conflict" without parsing the message text
"""

from dataclasses import dataclass

from reading_cohorts.core.domain_types import CohortId, EnrollmentOutcome

_SUCCESS_OUTCOMES = frozenset({
    EnrollmentOutcome.ENROLLED,
    EnrollmentOutcome.ALREADY_MEMBER,
    EnrollmentOutcome.REMOVED,
})


@dataclass(frozen=True)
class EnrollmentResult:
    outcome: EnrollmentOutcome
    message: str
    cohort_id: CohortId | None = None
    resource: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome in _SUCCESS_OUTCOMES

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "outcome": self.outcome.value,
            "cohort_id": self.cohort_id,
            "message": self.message,
        }


def enrolled(cohort_id: CohortId) -> EnrollmentResult:
    return EnrollmentResult(
        EnrollmentOutcome.ENROLLED, "Successfully assigned to cohort", cohort_id,
    )


def already_member(cohort_id: CohortId) -> EnrollmentResult:
    return EnrollmentResult(
        EnrollmentOutcome.ALREADY_MEMBER, "Already a member of this cohort", cohort_id,
    )


def cohort_full(cohort_id: CohortId) -> EnrollmentResult:
    return EnrollmentResult(
        EnrollmentOutcome.COHORT_FULL,
        "Cohort is full. Please try again later.",
        cohort_id,
    )


def no_open_cohort() -> EnrollmentResult:
    return EnrollmentResult(
        EnrollmentOutcome.NO_OPEN_COHORT,
        "No cohorts are currently accepting registrations",
    )


def not_found(what: str, cohort_id: CohortId | None = None) -> EnrollmentResult:
    return EnrollmentResult(
        EnrollmentOutcome.NOT_FOUND, f"{what} not found", cohort_id, resource=what,
    )


def removed(cohort_id: CohortId) -> EnrollmentResult:
    return EnrollmentResult(
        EnrollmentOutcome.REMOVED, "Member removed from cohort", cohort_id,
    )


def check_capacity(
    cohort_id: CohortId, active_count: int, capacity: int, has_membership: bool,
) -> EnrollmentResult | None:
    """First blocking outcome for a join attempt, or None when an insert should happen."""
    if has_membership:
        return already_member(cohort_id)
    if active_count >= capacity:
        return cohort_full(cohort_id)
    return None
