"""Errors — one exception hierarchy for every failure the API reports.

Invariants:
    - Each error knows its HTTP status, machine code, category and severity
    - to_response() always yields {"error": {code, message, category, severity,
      timestamp, context{client_id, application_id, operation, retry_after_ms}}}
      plus "details" when the error carries structured data
    - Messages never include stack traces, SQL or provider payloads

Design Decisions:
    - Routes raise these instead of HTTPException; api/error_handlers.py turns
      them into responses in one place
    - ErrorContext scopes an error to a client and/or application so log lines and
      responses can be traced back to a dossier
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Which dossier and operation an error belongs to."""
    client_id: str | None = None
    application_id: str | None = None
    operation: str | None = None
    retry_after_ms: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def scope(self) -> dict:
        return {
            "client_id": self.client_id,
            "application_id": self.application_id,
            "operation": self.operation,
            "retry_after_ms": self.retry_after_ms,
        }


class ZorgdossierError(Exception):
    """Base for all errors rendered through the API error envelope."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context if context is not None else ErrorContext()
        self.http_status = http_status
        self.details = details

    def to_response(self) -> dict:
        error = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
            "context": self.context.scope(),
        }
        if self.details is not None:
            error["details"] = self.details
        return {"error": error}


# ─── Domain Errors (400-level) ──────────────────────────────────

class RequestValidationFailed(ZorgdossierError):
    """Request passed schema validation but violates a field rule."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(ZorgdossierError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class ResourceConflictError(ZorgdossierError):
    """Resource with the same identity already exists."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' already exists",
            "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class WorkflowStateError(ZorgdossierError):
    """Operation not allowed in the resource's current status."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_STATE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class CriticalChecksFailedError(ZorgdossierError):
    """Submission blocked by failed critical normative checks."""
    def __init__(self, issues: list[dict], context: ErrorContext | None = None):
        super().__init__(
            "Cannot submit application with critical issues",
            "CRITICAL_CHECKS_FAILED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400, details=issues,
        )
        self.issues = issues


class UnsupportedMigrationError(ZorgdossierError):
    """Framework migration path is not supported."""
    def __init__(self, from_version: str, to_version: str, context: ErrorContext | None = None):
        super().__init__(
            f"Migration only supported from version 2025 to 2026 "
            f"(requested {from_version} -> {to_version})",
            "UNSUPPORTED_MIGRATION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class UnsupportedFormatError(ZorgdossierError):
    """Export format not supported."""
    def __init__(self, fmt: str, supported: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"Unsupported format '{fmt}'. Use {' or '.join(supported)}",
            "UNSUPPORTED_FORMAT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(ZorgdossierError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class AnthropicAPIError(ZorgdossierError):
    """Anthropic API call failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        # copy: the caller's context is reused across retries and criteria
        ctx = replace(context or ErrorContext(), retry_after_ms=retry_after_ms)
        super().__init__(
            f"Anthropic API error ({api_error_type}): {message}",
            "ANTHROPIC_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type
