"""FastAPI Exception Handlers

Converts AppErrors, request validation errors and stray exceptions into
failure envelopes with the status derived from the error taxonomy.
"""
from __future__ import annotations

from typing import NoReturn

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging import get_logger

from .boundaries import ValidationErrorMapper
from .responses import ActionResponse, ApiFailure, ApiSuccess, fail_from_error
from .types import AppError, AppErrorException, ErrorCode, ErrorContext

log = get_logger("errors.handlers")

_KNOWN_CODES = frozenset(code.value for code in ErrorCode)


def _log_error(error: AppError) -> None:
    status_code = error.status_code
    log_method = log.warning if status_code < 500 else log.error
    log_method(
        "error_response",
        error_code=error.code.value,
        message=error.message,
        status=status_code,
        category=error.code.category,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
        details=error.details,
    )


def error_response(error: AppError) -> JSONResponse:
    """Log an AppError and render it as a user-safe failure envelope."""
    _log_error(error)
    return JSONResponse(
        status_code=error.status_code,
        content=jsonable_encoder(fail_from_error(error).to_dict()),
    )


def envelope_response(
    envelope: ApiSuccess | ApiFailure | ActionResponse,
    status_code: int | None = None,
) -> JSONResponse:
    """Render an envelope.

    Without an explicit status, an ApiFailure takes the status of its code
    (400 for codes outside the taxonomy) and anything else gets 200.
    """
    if status_code is None:
        status_code = 200
        if isinstance(envelope, ApiFailure):
            code = envelope.error.code
            status_code = ErrorCode(code).status_code if code in _KNOWN_CODES else 400
    return JSONResponse(status_code=status_code, content=jsonable_encoder(envelope.to_dict()))


async def app_error_handler(request: Request, exc: AppErrorException) -> JSONResponse:
    """Handle AppErrorException raised in route handlers."""
    error = exc.error.with_context(
        request_id=request.headers.get("X-Request-ID"),
        correlation_id=request.headers.get("X-Correlation-ID") or exc.error.context.correlation_id,
    )
    return error_response(error)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle standard HTTP exceptions with structured error response."""
    status_code = exc.status_code
    code_map = {
        400: ErrorCode.VALIDATION_ERROR,
        401: ErrorCode.UNAUTHORIZED,
        403: ErrorCode.FORBIDDEN,
        404: ErrorCode.NOT_FOUND,
        409: ErrorCode.CONFLICT,
        422: ErrorCode.VALIDATION_ERROR,
        429: ErrorCode.TOO_MANY_REQUESTS,
        501: ErrorCode.NOT_IMPLEMENTED,
    }
    code = code_map.get(status_code)
    if code is None:
        code = ErrorCode.INTERNAL_ERROR if status_code >= 500 else ErrorCode.UNKNOWN_ERROR

    error = AppError(
        code,
        str(exc.detail) if exc.detail else f"HTTP {status_code}",
        context=ErrorContext(
            correlation_id=request.headers.get("X-Correlation-ID") or ErrorContext().correlation_id,
            origin="http",
        ),
    )
    _log_error(error)
    # Keep the framework's status (e.g. 405) rather than the code's default
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(fail_from_error(error).to_dict()),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors with per-field messages."""
    error = AppError(
        ErrorCode.VALIDATION_ERROR,
        "Request validation failed",
        field_errors=ValidationErrorMapper.field_errors(list(exc.errors())),
        context=ErrorContext(
            correlation_id=request.headers.get("X-Correlation-ID") or ErrorContext().correlation_id,
            origin="request_validation",
        ),
    )
    return error_response(error)


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Catch-all handler. Logs the traceback, never leaks the message."""
    error = AppError(
        ErrorCode.INTERNAL_ERROR,
        "An unexpected error occurred",
        context=ErrorContext(
            correlation_id=request.headers.get("X-Correlation-ID") or ErrorContext().correlation_id,
            origin="unhandled",
        ),
        cause=exc,
        operational=False,
    )
    log.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        correlation_id=error.context.correlation_id,
    )
    return error_response(error)


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on the FastAPI app."""
    app.add_exception_handler(AppErrorException, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def raise_error(error: AppError) -> NoReturn:
    """Raise AppError as exception.

    Usage:
        if not user:
            raise_error(not_found("User", user_id).error)
    """
    raise AppErrorException(error)
