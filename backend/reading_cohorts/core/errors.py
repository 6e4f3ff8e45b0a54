"""Error Hierarchy — typed, categorized exceptions for all cohort-engine failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope consumed by the HTTP layer
    - No internal details leaked in user-facing messages
    - Expected enrollment outcomes (full, duplicate) are result values, not exceptions;
      routes convert them into these errors only at the HTTP boundary

Design Decisions:
    - Single hierarchy with CohortError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    cohort_id: int | None = None
    member_id: int | None = None
    debug_info: dict[str, Any] | None = None


class CohortError(Exception):
    """Base exception for all cohort-engine errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "cohort_id": self.context.cohort_id,
                    "member_id": self.context.member_id,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidDateError(CohortError):
    """A raw date could not be parsed by any accepted format."""
    def __init__(self, raw: str, field: str = "start_date", context: ErrorContext | None = None):
        super().__init__(
            f"Unrecognized date '{raw}' (expected YYYY-MM-DD, MM/DD/YYYY, MM-DD-YYYY or MM.DD.YYYY)",
            "INVALID_DATE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.raw = raw
        self.field = field


class InvalidCohortUpdateError(CohortError):
    """An admin edit carried a value the cohort cannot hold."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_COHORT_UPDATE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(CohortError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class CohortFullError(CohortError):
    """Cohort has reached capacity, or no cohort is accepting registrations."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "COHORT_FULL", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class NoOpenCohortError(CohortError):
    """No cohort is accepting registrations and none could be created."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "NO_OPEN_COHORT", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )


class MemberExistsError(CohortError):
    """A member with this email is already registered."""
    def __init__(self, email: str, context: ErrorContext | None = None):
        super().__init__(
            f"A member with email '{email}' already exists",
            "MEMBER_EXISTS", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class AdminAuthorizationError(CohortError):
    """Admin-only operation attempted without a valid admin token."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Admin credentials required",
            "ADMIN_REQUIRED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(CohortError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
