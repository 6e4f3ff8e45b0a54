"""Error Handlers — global exception handlers and enrollment-outcome mapping.

Invariants:
    - CohortError → structured JSON with error code, message, severity
    - RequestValidationError → field-level error details
    - Exception (catch-all) → never leaks internal details
    - Unsuccessful EnrollmentResult values become typed errors here and nowhere
      else: NOT_FOUND → 404, COHORT_FULL → 409, NO_OPEN_COHORT → 409

Design Decisions:
    - Three-layer handler: domain (CohortError), validation (Pydantic), catch-all (Exception)
    - Expected enrollment outcomes stay result values inside services; only the
      HTTP boundary turns them into exceptions
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from reading_cohorts.core.domain_types import EnrollmentOutcome
from reading_cohorts.core.enrollment import EnrollmentResult
from reading_cohorts.core.errors import (
    CohortError, CohortFullError, ErrorContext, ErrorSeverity,
    NoOpenCohortError, ResourceNotFoundError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_cohort_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_cohort_error_handler(app: FastAPI) -> None:

    @app.exception_handler(CohortError)
    async def cohort_error_handler(request: Request, exc: CohortError):
        """Handle all cohort domain/infrastructure errors."""
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"CohortError: {exc.message}",
            extra={
                "error_code": exc.code, "path": request.url.path,
                "cohort_id": exc.context.cohort_id, "member_id": exc.context.member_id,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }


# ─── Enrollment Outcomes ─────────────────────────────────────────

def error_for_result(
    result: EnrollmentResult, member_id: int, cohort_id: int | None = None,
) -> CohortError:
    """Typed error for an unsuccessful enrollment result."""
    context = ErrorContext(cohort_id=result.cohort_id or cohort_id, member_id=member_id)
    if result.outcome == EnrollmentOutcome.NOT_FOUND:
        resource = result.resource or "Resource"
        resource_id = {
            "Member": str(member_id),
            "Cohort": str(cohort_id),
        }.get(resource, f"{cohort_id}/{member_id}")
        return ResourceNotFoundError(resource, resource_id, context)
    if result.outcome == EnrollmentOutcome.COHORT_FULL:
        return CohortFullError(result.message, context)
    if result.outcome == EnrollmentOutcome.NO_OPEN_COHORT:
        return NoOpenCohortError(result.message, context)
    raise ValueError(f"Enrollment outcome '{result.outcome.value}' is not an error")
