"""VentureNest API error handling.

Provides ApiHttpError and FastAPI exception handlers that render every
failure as the shared error envelope with request_id tracing.

Global exception handlers:
- ApiHttpError: API-level errors (e.g., missing credentials)
- VentureNestError: service failures, status derived from ErrorKind
- HTTPException: FastAPI/Starlette HTTP exceptions
- RequestValidationError: Pydantic validation errors
- Exception: Catch-all for unhandled exceptions (fail closed, no stack traces)
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from venturenest.api.error_model import (
    ERROR_KIND_TO_STATUS,
    get_error_code_for_status,
    make_error_response,
)
from venturenest.errors import ErrorKind, VentureNestError

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Error envelope schema."""

    code: str
    message: str
    details: dict[str, Any] | None = None
    request_id: str | None = None


class ApiHttpError(Exception):
    """Application-level HTTP error with structured error envelope.

    Attributes:
        status_code: HTTP status code (e.g., 401, 404, 500).
        code: Machine-readable error code (e.g., "UNAUTHORIZED").
        message: Human-readable error message.
        details: Optional dict with additional error context.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


async def api_http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for ApiHttpError."""
    assert isinstance(exc, ApiHttpError)

    return make_error_response(
        request,
        code=exc.code,
        message=exc.message,
        http_status=exc.status_code,
        details=exc.details,
    )


async def venturenest_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for service-layer failures.

    The HTTP status follows the error kind: validation 422, not_found 404,
    conflict 409, unavailable 503, forbidden 403.
    """
    assert isinstance(exc, VentureNestError)

    status = ERROR_KIND_TO_STATUS.get(exc.kind, 500)
    if exc.kind is ErrorKind.UNAVAILABLE:
        logger.warning("Backend unavailable on %s %s: %s", request.method, request.url.path, exc)

    details: dict[str, Any] = {"kind": exc.kind.value}
    if exc.collection:
        details["collection"] = exc.collection
    if exc.record_id:
        details["record_id"] = exc.record_id

    return make_error_response(
        request,
        code=get_error_code_for_status(status),
        message=exc.message,
        http_status=status,
        details=details,
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for HTTPException.

    Maps standard HTTP exceptions to the error envelope.
    """
    assert isinstance(exc, StarletteHTTPException)

    code = get_error_code_for_status(exc.status_code)
    message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code}"

    return make_error_response(
        request,
        code=code,
        message=message,
        http_status=exc.status_code,
        details=None,
    )


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for RequestValidationError.

    Does not expose raw validation internals.
    """
    assert isinstance(exc, RequestValidationError)

    safe_details: list[dict[str, Any]] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        safe_loc = [str(part) for part in loc if part not in ("body", "query", "path")]
        safe_details.append(
            {
                "field": ".".join(safe_loc) if safe_loc else "request",
                "message": error.get("msg", "Validation error"),
            }
        )

    return make_error_response(
        request,
        code="REQUEST_VALIDATION_FAILED",
        message="Request validation failed",
        http_status=422,
        details={"errors": safe_details} if safe_details else None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler for unhandled exceptions.

    Fails closed: returns 500 with a safe generic message and logs the
    exception with its request_id.
    """
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception: %s",
        type(exc).__name__,
        extra={"request_id": request_id},
    )

    return make_error_response(
        request,
        code="INTERNAL_ERROR",
        message="An internal error occurred",
        http_status=500,
        details=None,
    )
