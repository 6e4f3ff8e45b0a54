"""Cohort Schemas — request/response models for the cohort admin endpoints.

Invariants:
    - Date strings are passed through unparsed; core/date_anchor.py is the single
      parser and answers bad input with InvalidDateError (400)
    - CohortUpdate is partial: only fields present in the request are applied
    - capacity, when given, is a positive integer
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reading_cohorts.core.domain_types import CohortStatus


class CohortCreate(BaseModel):
    """Cohort creation — start date in any accepted format; name optional."""
    start_date: str = Field(min_length=1, max_length=20)
    capacity: int | None = Field(None, gt=0)
    status: CohortStatus = CohortStatus.UPCOMING
    name: str | None = Field(None, max_length=100)
    chat_invite_url: str | None = Field(None, max_length=500)
    reading_plan_url: str | None = Field(None, max_length=500)

    @field_validator("start_date")
    @classmethod
    def strip_start_date(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("start_date cannot be empty or whitespace")
        return v


class CohortUpdate(BaseModel):
    """Partial cohort edit. A new start_date regenerates the name unless name is sent too."""
    name: str | None = Field(None, max_length=100)
    status: CohortStatus | None = None
    start_date: str | None = Field(None, max_length=20)
    capacity: int | None = Field(None, gt=0)
    chat_invite_url: str | None = Field(None, max_length=500)
    reading_plan_url: str | None = Field(None, max_length=500)


class CohortResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_date: date
    end_date: date
    registration_deadline: date
    capacity: int
    status: str
    is_legacy: bool
    sort_rank: int | None = None
    chat_invite_url: str | None = None
    reading_plan_url: str | None = None


class CohortWithCountResponse(CohortResponse):
    member_count: int = 0


class SortOrderRequest(BaseModel):
    """Cohort ids in the desired display order (first = rank 1)."""
    cohort_ids: list[int] = Field(min_length=1)


class NormalizeResponse(BaseModel):
    updated: int


class SeedBaselineResponse(BaseModel):
    created: int
