"""Exception handlers rendering errors as JSON."""

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from carebook.core.exceptions import AppException, SchedulingConflictError

logger = structlog.get_logger(__name__)


def _error_body(request: Request, error: str, kind: str, message: str) -> dict:
    return {
        "error": error,
        "kind": kind,
        "message": message,
        "path": str(request.url),
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle domain exceptions.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        JSON error response carrying the exception's stable ``kind``
    """
    content = _error_body(request, exc.__class__.__name__, exc.kind, exc.message)
    if isinstance(exc, SchedulingConflictError):
        content["conflicting_appointment_id"] = (
            str(exc.conflicting_appointment_id) if exc.conflicting_appointment_id else None
        )
    logger.info("request_rejected", kind=exc.kind, path=request.url.path, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions raised by FastAPI or the dependencies."""
    kind = "unauthorized" if exc.status_code == status.HTTP_401_UNAUTHORIZED else "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, "HTTPException", kind, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle request validation errors.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        JSON error response with validation details
    """
    content = _error_body(
        request, "ValidationError", "validation_error", "Request validation failed"
    )
    content["details"] = jsonable_encoder(exc.errors())
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error_type=exc.__class__.__name__,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request, "InternalServerError", "internal_error", "An unexpected error occurred"
        ),
    )
