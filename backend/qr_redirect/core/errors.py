"""Error Hierarchy — typed, categorized exceptions for resolve-path failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Policy denials are NOT errors: NeedPin/WrongPin/Unavailable are outcomes
    - Infrastructure errors (store, network) are critical; selector errors are warnings
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with QrRedirectError base: FastAPI global handler catches all
      (ADR: uniform error shape)
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
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    slug: str | None = None
    record_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class QrRedirectError(Exception):
    """Base exception for all QR Redirect errors."""

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
                    "slug": self.context.slug,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidSlugError(QrRedirectError):
    """Slug is empty or contains characters outside [A-Za-z0-9_-]."""
    def __init__(self, slug: str, context: ErrorContext | None = None):
        super().__init__(
            "Slug must be a non-empty token of letters, digits, '-' or '_'",
            "INVALID_SLUG", ErrorCategory.VALIDATION,
            ErrorSeverity.INFO, context, 400,
        )
        self.slug = slug


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreUnavailableError(QrRedirectError):
    """Record store or scan sink could not be reached. Retryable."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
        self.retryable = True


class AnthropicAPIError(QrRedirectError):
    """Anthropic API call failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Anthropic API error ({api_error_type}): {message}",
            "ANTHROPIC_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type


class FallbackSelectionError(QrRedirectError):
    """Fallback chooser failed, timed out, or answered outside the candidates.

    Always recovered locally by the destination resolver.
    """
    def __init__(self, message: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Fallback selection failed ({reason}): {message}",
            "FALLBACK_SELECTION_FAILED",
            ErrorCategory.TIMEOUT if reason == "timeout" else ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 502,
        )
        self.reason = reason
