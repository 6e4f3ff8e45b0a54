"""Enrollment Schemas — member join requests and their outcomes."""

from pydantic import BaseModel, Field


class EnrollRequest(BaseModel):
    member_id: int = Field(gt=0)


class EnrollmentResponse(BaseModel):
    success: bool
    outcome: str
    cohort_id: int | None = None
    message: str
