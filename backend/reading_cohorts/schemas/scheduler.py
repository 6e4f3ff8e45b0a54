"""Scheduler Schemas — the report returned by an on-demand maintenance pass."""

from datetime import date

from pydantic import BaseModel


class StepResultResponse(BaseModel):
    name: str
    ok: bool
    detail: dict = {}
    error: str | None = None


class PassReportResponse(BaseModel):
    today: date
    ok: bool
    skipped: bool
    steps: list[StepResultResponse]
