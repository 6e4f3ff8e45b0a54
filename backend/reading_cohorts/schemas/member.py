"""Member Schemas — admin-created members and cohort rosters.

Invariants:
    - MemberCreate.email is stripped and lower-cased before it reaches the service
    - MemberCreate.name: 1-100 chars after stripping
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reading_cohorts.core.domain_types import MemberRole


class MemberCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=r"^\s*[^@\s]+@[^@\s]+\.[^@\s]+\s*$", max_length=254)
    role: MemberRole = MemberRole.MEMBER

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str


class CohortMemberResponse(BaseModel):
    """One active membership row on a cohort roster."""
    member_id: int
    name: str
    email: str
    join_date: date
    status: str


class AdminEnrollRequest(BaseModel):
    member_id: int = Field(gt=0)
