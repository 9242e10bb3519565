"""Error Hierarchy: typed, categorized exceptions for all Parley failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (4xx) are recoverable by the caller; infrastructure errors (5xx) are critical
    - to_response() produces the REST error envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with ParleyError base: one FastAPI handler renders all of them
    - ErrorContext as dataclass: observability fields travel with the error, not the logger
    - Analysis failures are 500 with distinct codes so clients can tell
      "provider down" from "provider answered garbage"
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
    RESOURCE_GONE = "resource_gone"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class ParleyError(Exception):
    """Base exception for all Parley errors."""

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
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "session_id": self.context.session_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (4xx) ────────────────────────────────────────

class InputValidationError(ParleyError):
    """Malformed input: empty content, bad sender tag, missing name."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(ParleyError):
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


class SessionExpiredError(ParleyError):
    """Session is past its expires_at. Reads never return its body."""
    def __init__(self, expired_at: datetime, context: ErrorContext | None = None):
        super().__init__(
            f"Session expired at {expired_at.isoformat()}",
            "SESSION_EXPIRED", ErrorCategory.RESOURCE_GONE,
            ErrorSeverity.WARNING, context, 410,
        )
        self.expired_at = expired_at


class InvalidSessionStateError(ParleyError):
    """Operation not valid for this session's anonymity or join mode."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_SESSION_STATE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class SessionFullError(ParleyError):
    """Second participant slot already taken."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Session is already full",
            "SESSION_FULL", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class TurnNotAllowedError(ParleyError):
    """Turn-Gate refused a message for this role."""
    def __init__(self, role: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Participant {role} may not send right now: {reason}",
            "TURN_NOT_ALLOWED", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.role = role


class ParticipantMismatchError(ParleyError):
    """Presented participant token is not bound to the claimed role."""
    def __init__(self, role: str, context: ErrorContext | None = None):
        super().__init__(
            f"Participant token does not belong to role {role}",
            "PARTICIPANT_MISMATCH", ErrorCategory.FORBIDDEN,
            ErrorSeverity.WARNING, context, 403,
        )
        self.role = role


class AnalysisNotReadyError(ParleyError):
    """Analysis preconditions unmet (too few messages, or one-sided)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "ANALYSIS_NOT_READY", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Infrastructure Errors (5xx) ────────────────────────────────

class StoreUnavailableError(ParleyError):
    """Durable store failed, including after the single retry."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class AnalysisUnavailableError(ParleyError):
    """Analysis capability unreachable, timed out, or misconfigured."""
    def __init__(
        self,
        message: str,
        reason: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Analysis unavailable ({reason}): {message}",
            "ANALYSIS_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.reason = reason


class MalformedAnalysisResponseError(ParleyError):
    """Analysis capability answered, but not with the expected structure."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Malformed analysis response: {message}",
            "MALFORMED_ANALYSIS_RESPONSE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 500,
        )
