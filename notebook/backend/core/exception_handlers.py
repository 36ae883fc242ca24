"""
Exception Handlers.

Turns every failure that escapes an endpoint into the ErrorResponse
envelope. Notebook lifecycle errors (EmptyFieldError, ForbiddenError,
ScopeMismatchError, ...) map to a status through their category base
class, so new error types need no handler changes.

Usage:
    from notebook.backend.core.exception_handlers import register_exception_handlers

    register_exception_handlers(app)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notebook.backend.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from notebook.backend.core.logging import get_logger
from notebook.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    DatabaseError: 503,
}


def status_for(exc: ApplicationError) -> int:
    """HTTP status of the closest mapped base class, 500 if none."""
    return next(
        (EXCEPTION_STATUS_MAP[cls] for cls in type(exc).__mro__ if cls in EXCEPTION_STATUS_MAP),
        500,
    )


def _get_request_id(request: Request) -> str | None:
    """Request id set by RequestContextMiddleware, else the raw header."""
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get("x-request-id")


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details or None),
        metadata=ResponseMetadata(request_id=_get_request_id(request)),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _request_fields(request: Request) -> dict[str, Any]:
    return {
        "path": request.url.path,
        "method": request.method,
        "request_id": _get_request_id(request),
    }


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    """Map an ApplicationError to its status; 5xx are logged as errors."""
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Request failed",
        extra={"code": exc.code, "status": status_code, "error": exc.message, **_request_fields(request)},
    )

    details = exc.details if isinstance(exc, ValidationError) else None
    return _error_response(request, status_code, exc.code, exc.message, details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query strings: 422 with one entry per field."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", "Validation error"),
            "type": err.get("type", "unknown"),
        }
        for err in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        extra={"error_count": len(errors), **_request_fields(request)},
    )
    return _error_response(
        request,
        422,
        "VAL_REQUEST_INVALID",
        "Request validation failed",
        {"validation_errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else: logged with traceback, answered with a generic 500."""
    logger.exception(
        "Unhandled exception",
        extra={"exception_type": type(exc).__name__, **_request_fields(request)},
    )
    return _error_response(request, 500, "SYS_INTERNAL_ERROR", "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
