"""Exception handlers for the whiteboard-sync HTTP API.

Every handler returns a structured JSON error body carrying the request's
correlation ID. The WebSocket channel never surfaces these; it has its own
fire-and-forget error policy in the realtime layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from litestar import Response
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

if TYPE_CHECKING:
    from litestar import Request
    from litestar.exceptions import HTTPException, ValidationException

logger = structlog.get_logger(__name__)

_STATUS_CODES = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation_error",
    429: "rate_limited",
    500: "internal_error",
    503: "service_unavailable",
}


@dataclass
class ErrorDetail:
    """Details about a specific error."""

    field: str | None = None
    message: str = ""
    code: str = "error"


@dataclass
class ErrorResponse:
    """Structured error response format."""

    status: str = "error"
    message: str = ""
    code: str = "internal_error"
    correlation_id: str | None = None
    details: list[ErrorDetail] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: dict[str, Any] = {
            "status": self.status,
            "message": self.message,
            "code": self.code,
        }
        if self.correlation_id:
            result["correlation_id"] = self.correlation_id
        if self.details:
            result["details"] = [{"field": d.field, "message": d.message, "code": d.code} for d in self.details]
        return result


def get_correlation_id(request: Request) -> str | None:
    """Extract correlation ID from request state or headers."""
    correlation_id = request.scope.get("state", {}).get("correlation_id")
    if correlation_id:
        return correlation_id
    return request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID")


def _json_response(error: ErrorResponse, status_code: int) -> Response[dict[str, Any]]:
    return Response(content=error.to_dict(), status_code=status_code, media_type="application/json")


def validation_exception_handler(request: Request, exc: ValidationException) -> Response[dict[str, Any]]:
    """Handle request validation errors with per-field details."""
    correlation_id = get_correlation_id(request)

    details: list[ErrorDetail] = []
    if exc.extra:
        for error in exc.extra:
            if isinstance(error, dict):
                key = error.get("key")
                details.append(
                    ErrorDetail(
                        field=str(key) if key is not None else None,
                        message=str(error.get("message", error)),
                        code="validation_error",
                    )
                )
            else:
                details.append(ErrorDetail(message=str(error), code="validation_error"))

    if not details:
        details.append(ErrorDetail(message=str(exc.detail), code="validation_error"))

    logger.warning(
        "Validation error",
        path=request.url.path,
        method=request.method,
        error_count=len(details),
    )

    return _json_response(
        ErrorResponse(
            message="Validation failed",
            code="validation_error",
            correlation_id=correlation_id,
            details=details,
        ),
        HTTP_422_UNPROCESSABLE_ENTITY,
    )


def http_exception_handler(request: Request, exc: HTTPException) -> Response[dict[str, Any]]:
    """Handle HTTP exceptions with structured responses."""
    error_code = _STATUS_CODES.get(exc.status_code, "error")
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    log_method = logger.warning if exc.status_code < 500 else logger.error
    log_method(
        "HTTP exception",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        error_code=error_code,
    )

    return _json_response(
        ErrorResponse(message=message, code=error_code, correlation_id=get_correlation_id(request)),
        exc.status_code,
    )


def session_not_found_handler(request: Request, exc: Exception) -> Response[dict[str, Any]]:
    """Handle SessionNotFoundError exceptions."""
    session_id = getattr(exc, "session_id", "unknown")

    logger.warning("Session not found", session_id=str(session_id), path=request.url.path)

    return _json_response(
        ErrorResponse(
            message=f"Session not found: {session_id}",
            code="session_not_found",
            correlation_id=get_correlation_id(request),
            details=[ErrorDetail(field="session_id", message=str(exc), code="not_found")],
        ),
        HTTP_404_NOT_FOUND,
    )


def invalid_action_handler(request: Request, exc: Exception) -> Response[dict[str, Any]]:
    """Handle InvalidActionError exceptions."""
    logger.warning("Invalid drawing action", error=str(exc), path=request.url.path)

    return _json_response(
        ErrorResponse(message=str(exc), code="invalid_action", correlation_id=get_correlation_id(request)),
        HTTP_400_BAD_REQUEST,
    )


def generic_exception_handler(request: Request, exc: Exception) -> Response[dict[str, Any]]:
    """Handle unexpected exceptions with a generic error response.

    Logs the full exception but returns a safe message to the client.
    """
    logger.exception(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )

    return _json_response(
        ErrorResponse(
            message="An unexpected error occurred. Please try again later.",
            code="internal_error",
            correlation_id=get_correlation_id(request),
        ),
        HTTP_500_INTERNAL_SERVER_ERROR,
    )


def get_exception_handlers() -> dict:
    """Get all exception handlers for the application.

    Returns:
        Dictionary mapping exception types to handler functions.
    """
    from litestar.exceptions import HTTPException, ValidationException

    from whiteboard_sync.exceptions import InvalidActionError, SessionNotFoundError

    return {
        ValidationException: validation_exception_handler,
        HTTPException: http_exception_handler,
        SessionNotFoundError: session_not_found_handler,
        InvalidActionError: invalid_action_handler,
        Exception: generic_exception_handler,
    }
