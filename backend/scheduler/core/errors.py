"""Error Hierarchy — typed, categorized exceptions for all scheduler failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are never retried; TransientStorageError (503) is
      safe for the caller to retry
    - to_response() produces the REST envelope
    - UnauthorizedError never carries detail beyond "access denied"
    - NotificationFanoutError is non-fatal: surfaced via to_warning(), not raised
      to the boundary

Design Decisions:
    - Single hierarchy with SchedulerError base: FastAPI global handler catches all
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
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    NOTIFICATION = "notification"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    band_id: str | None = None
    rehearsal_id: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None


class SchedulerError(Exception):
    """Base exception for all scheduler errors."""

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

    def details(self) -> list[dict] | None:
        return None

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        body = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
        }
        details = self.details()
        if details is not None:
            body["details"] = details
        return {"error": body}


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(SchedulerError):
    """Malformed input. Names the offending field(s)."""
    def __init__(
        self, message: str, fields: list[str], context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.fields = fields

    def details(self) -> list[dict]:
        return [{"field": f, "message": self.message} for f in self.fields]


class AuthenticationRequiredError(SchedulerError):
    """No valid caller identity on the request."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Authentication required", "AUTHENTICATION_REQUIRED",
            ErrorCategory.AUTHENTICATION, ErrorSeverity.ERROR, context, 401,
        )


class UnauthorizedError(SchedulerError):
    """Caller lacks the required capability on the band."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Access denied", "ACCESS_DENIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.ERROR, context, 403,
        )


class ResourceNotFoundError(SchedulerError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(SchedulerError):
    """Unique constraint violated and not absorbed by upsert semantics."""
    def __init__(self, message: str = "Resource already exists", context: ErrorContext | None = None):
        super().__init__(
            message, "DUPLICATE_RESOURCE", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class TransientStorageError(SchedulerError):
    """Store unreachable or timed out. Safe to retry from the caller."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "TRANSIENT_STORAGE_FAILURE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class NotificationFanoutError(SchedulerError):
    """Notification rows could not be written after the primary commit."""
    def __init__(self, rehearsal_id: str, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.rehearsal_id = rehearsal_id
        super().__init__(
            f"Notifications for rehearsal '{rehearsal_id}' were not recorded: {reason}",
            "NOTIFICATION_FANOUT_FAILED", ErrorCategory.NOTIFICATION,
            ErrorSeverity.WARNING, ctx, 500,
        )

    def to_warning(self) -> dict:
        """Warning entry embedded in a successful response."""
        return {"code": self.code, "message": self.message}
