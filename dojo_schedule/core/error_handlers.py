"""
FastAPI exception handlers: every failure is rendered as
{"error", "message", "details", "path"}
"""

import json
import logging
import traceback
from fastapi import Request, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    TimeoutError,
    DisconnectionError,
)

from dojo_schedule.core.config import DEBUG
from dojo_schedule.core.database import violated_constraint
from dojo_schedule.core.exceptions import (
    BaseAppException,
    DatabaseError,
    DatabaseConnectionError,
    DatabaseTimeoutError,
    DatabaseIntegrityError,
)
from dojo_schedule.core.logging_utils import error_tracker

logger = logging.getLogger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: dict = None,
    headers: dict = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "details": details or {},
            "path": request.url.path,
        },
        headers=headers,
    )


def _request_context(request: Request, **extra) -> dict:
    return {"path": request.url.path, "method": request.method, **extra}


def _json_safe(value):
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


async def app_exception_handler(
    request: Request, exc: BaseAppException
) -> JSONResponse:
    """Client errors log at WARNING, server-side ones at ERROR"""
    logger.log(
        logging.WARNING if exc.status_code < 500 else logging.ERROR,
        f"{exc.error_code}: {exc.message}",
        extra=_request_context(
            request,
            error_code=exc.error_code,
            status_code=exc.status_code,
            details=exc.details,
        ),
    )
    return _error_response(
        request, exc.status_code, exc.error_code, exc.message, exc.details
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra=_request_context(request, status_code=exc.status_code),
    )
    return _error_response(
        request,
        exc.status_code,
        "HTTP_ERROR",
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request bodies and parameters that failed pydantic validation"""
    fields = [
        {
            "field": " -> ".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "Validation error"),
            "type": error.get("type", "value_error"),
            "input": _json_safe(error.get("input")),
        }
        for error in exc.errors()
    ]

    logger.warning(
        f"Request validation failed for {len(fields)} field(s)",
        extra=_request_context(request, errors=fields),
    )
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        f"Validation failed for {len(fields)} field(s)",
        {"fields": fields},
    )


def _as_app_exception(exc: SQLAlchemyError) -> BaseAppException:
    if isinstance(exc, IntegrityError):
        return DatabaseIntegrityError(
            violated_constraint(exc) or "unknown", {"original_error": str(exc.orig)}
        )
    if isinstance(exc, (OperationalError, DisconnectionError)):
        return DatabaseConnectionError("Database connection lost")
    if isinstance(exc, TimeoutError):
        return DatabaseTimeoutError("database_operation", 30)
    return DatabaseError(f"Database operation failed: {str(exc)}")


async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """SQLAlchemy errors that escaped the data-access layer"""
    logger.error(
        f"Database exception: {type(exc).__name__} - {str(exc)}",
        extra=_request_context(
            request,
            exception_type=type(exc).__name__,
            traceback=traceback.format_exc(),
        ),
    )
    return await app_exception_handler(request, _as_app_exception(exc))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    exception_type = type(exc).__name__
    logger.error(
        f"Unhandled exception: {exception_type} - {str(exc)}",
        extra=_request_context(
            request, exception_type=exception_type, traceback=traceback.format_exc()
        ),
    )
    error_tracker.track_error(exception_type, str(exc), _request_context(request))

    details = {}
    if DEBUG:
        details = {"exception_type": exception_type, "traceback": traceback.format_exc()}

    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
        details,
    )


def setup_exception_handlers(app):
    app.add_exception_handler(BaseAppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")
