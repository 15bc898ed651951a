"""Error Hierarchy — closed set of typed errors for every PlaceShare failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
      and an HTTP status
    - Exactly five variants: validation (422), geocode (422), not found (404),
      unauthorized (401), internal (500)
    - to_response() produces the REST envelope; internal causes never appear in it

Design Decisions:
    - Single hierarchy with PlacesError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: observability fields without coupling to the logging setup
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
    EXTERNAL_API = "external_api"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHORIZATION = "authorization"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context carried alongside an error for logs."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    place_id: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None


class PlacesError(Exception):
    """Base exception for all PlaceShare errors."""

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
                "status": self.http_status,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
            }
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class ValidationFailedError(PlacesError):
    """Request input failed validation."""
    def __init__(
        self,
        message: str = "Invalid inputs passed, please check your data.",
        details: list[dict] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 422,
        )
        self.details = details or []

    def to_response(self) -> dict:
        response = super().to_response()
        if self.details:
            response["error"]["details"] = self.details
        return response


class GeocodeError(PlacesError):
    """Address could not be resolved to coordinates."""
    def __init__(
        self,
        message: str = "Could not find location for the specified address.",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "GEOCODE_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 422,
        )


class ResourceNotFoundError(PlacesError):
    """Requested resource does not exist."""
    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        message: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message or f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class UnauthorizedError(PlacesError):
    """Caller is not authenticated, or does not own the resource."""
    def __init__(
        self,
        message: str = "Authentication failed!",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 401,
        )


# ─── Server Errors (500-level) ──────────────────────────────────

class InternalError(PlacesError):
    """Storage or other internal failure. The cause is logged, never returned."""
    def __init__(
        self,
        message: str = "Something went wrong, please try again later.",
        operation: str = "unknown",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation
