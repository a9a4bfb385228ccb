"""Error Hierarchy — typed, categorized exceptions for all DocketWatch failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope; no internal details leaked in messages
    - Persistence conflicts on the notification dedup tuple are NOT errors (no class here)

Design Decisions:
    - Single hierarchy with DocketWatchError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - UpstreamTransientError vs UpstreamAuthError: the orchestrator skips a page for the
      former and aborts the tenant's run for the latter
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    CACHE = "cache"
    DELIVERY = "delivery"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    tenant_id: str | None = None
    recipient_id: str | None = None
    page: int | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class DocketWatchError(Exception):
    """Base exception for all DocketWatch errors."""

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
                    "tenant_id": self.context.tenant_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ResourceNotFoundError(DocketWatchError):
    """Requested resource does not exist (or is not visible to the caller)."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class UnauthorizedError(DocketWatchError):
    """Caller could not be authenticated."""
    def __init__(self, message: str = "Unauthorized", context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ConcurrencyError(DocketWatchError):
    """Concurrent operation already holds the resource."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(DocketWatchError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class UpstreamTransientError(DocketWatchError):
    """Docketwise unreachable, timed out, 5xx, or still rate limited after retries."""
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Docketwise transient error: {message}",
            "UPSTREAM_TRANSIENT", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, ctx, 503,
        )
        self.status_code = status_code


class UpstreamAuthError(DocketWatchError):
    """Docketwise rejected our credentials — fatal for the tenant's run."""
    def __init__(self, status_code: int, context: ErrorContext | None = None):
        super().__init__(
            f"Docketwise rejected credentials (HTTP {status_code})",
            "UPSTREAM_AUTH", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.status_code = status_code


class MalformedPageError(DocketWatchError):
    """Docketwise returned a page body we cannot interpret."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Malformed Docketwise page: {message}",
            "UPSTREAM_MALFORMED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 502,
        )


class CacheUnavailableError(DocketWatchError):
    """Cache backend failed — always handled as a cache miss."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cache unavailable: {message}",
            "CACHE_UNAVAILABLE", ErrorCategory.CACHE,
            ErrorSeverity.WARNING, context, 503,
        )


class EmailDeliveryError(DocketWatchError):
    """Email transport failed to hand off a message."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Email delivery failed: {message}",
            "EMAIL_DELIVERY_FAILED", ErrorCategory.DELIVERY,
            ErrorSeverity.ERROR, context, 502,
        )
