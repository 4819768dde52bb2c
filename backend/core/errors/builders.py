"""Domain-Specific Error Builders

Ergonomic constructors for typed errors across all domains.
Each builder creates an AppError with the appropriate code and context
and returns it wrapped in Err.
"""
from typing import Any, Mapping
from uuid import UUID

from .types import AppError, ErrorCode, ErrorContext, Err


def _build(
    code: ErrorCode,
    message: str | None = None,
    *,
    origin: str = "",
    cause: BaseException | None = None,
    field_errors: Mapping[str, str] | None = None,
    operational: bool = True,
    **details: Any,
) -> Err[AppError]:
    payload = {k: v for k, v in details.items() if v is not None}
    return Err(AppError(
        code,
        message,
        payload or None,
        field_errors=field_errors,
        context=ErrorContext(origin=origin),
        cause=cause,
        operational=operational,
    ))


# =============================================================================
# Validation Errors
# =============================================================================

def validation_error(
    message: str | None = None,
    *,
    field_errors: Mapping[str, str] | None = None,
    origin: str = "",
    **details: Any,
) -> Err[AppError]:
    """Create validation error, optionally with per-field messages."""
    return _build(
        ErrorCode.VALIDATION_ERROR,
        message,
        field_errors=field_errors,
        origin=origin,
        **details,
    )


def missing_field(field: str, origin: str = "") -> Err[AppError]:
    return _build(
        ErrorCode.MISSING_FIELD,
        f"{field} is required",
        field_errors={field: f"{field} is required"},
        origin=origin,
        field=field,
    )


def invalid_format(
    field: str, expected: str | None = None, origin: str = ""
) -> Err[AppError]:
    msg = f"Invalid format for {field}"
    if expected:
        msg += f": {expected}"
    return _build(
        ErrorCode.INVALID_FORMAT,
        msg,
        field_errors={field: msg},
        origin=origin,
        field=field,
        expected_format=expected,
    )


def invalid_email(origin: str = "") -> Err[AppError]:
    return _build(ErrorCode.INVALID_EMAIL, origin=origin)


def weak_password(requirements: list[str] | None = None, origin: str = "") -> Err[AppError]:
    return _build(
        ErrorCode.PASSWORD_TOO_WEAK,
        origin=origin,
        requirements=requirements,
    )


# =============================================================================
# Authentication/Authorization Errors
# =============================================================================

def auth_error(
    message: str | None = None,
    *,
    code: ErrorCode = ErrorCode.AUTH_ERROR,
    origin: str = "authentication",
    **details: Any,
) -> Err[AppError]:
    """Create authentication/authorization error."""
    return _build(code, message, origin=origin, **details)


def invalid_credentials(origin: str = "authentication") -> Err[AppError]:
    return auth_error(code=ErrorCode.INVALID_CREDENTIALS, origin=origin)


def invalid_token(reason: str | None = None, origin: str = "authentication") -> Err[AppError]:
    return auth_error(reason, code=ErrorCode.INVALID_TOKEN, origin=origin)


def token_expired(origin: str = "authentication") -> Err[AppError]:
    return auth_error(code=ErrorCode.TOKEN_EXPIRED, origin=origin)


def email_not_verified(origin: str = "authentication") -> Err[AppError]:
    return auth_error(code=ErrorCode.EMAIL_NOT_VERIFIED, origin=origin)


def unauthorized(message: str | None = None, origin: str = "") -> Err[AppError]:
    return _build(ErrorCode.UNAUTHORIZED, message, origin=origin)


def forbidden(message: str | None = None, origin: str = "") -> Err[AppError]:
    return _build(ErrorCode.FORBIDDEN, message, origin=origin)


# =============================================================================
# Database Errors
# =============================================================================

def db_error(
    message: str | None = None,
    *,
    code: ErrorCode = ErrorCode.DATABASE_ERROR,
    origin: str = "database",
    cause: BaseException | None = None,
    **details: Any,
) -> Err[AppError]:
    """Create database error."""
    return _build(code, message, origin=origin, cause=cause, **details)


def db_connection_failed(origin: str = "database", cause: BaseException | None = None) -> Err[AppError]:
    return db_error(code=ErrorCode.DATABASE_CONNECTION_ERROR, origin=origin, cause=cause)


def query_failed(
    query: str | None = None, origin: str = "database", cause: BaseException | None = None
) -> Err[AppError]:
    return db_error(
        code=ErrorCode.QUERY_FAILED,
        origin=origin,
        cause=cause,
        query=query[:200] if query else None,  # Truncate for safety
    )


def transaction_failed(
    reason: str | None = None, origin: str = "database", cause: BaseException | None = None
) -> Err[AppError]:
    return db_error(
        code=ErrorCode.TRANSACTION_FAILED,
        origin=origin,
        cause=cause,
        reason=reason,
    )


# =============================================================================
# Resource Errors
# =============================================================================

def not_found(
    resource: str | None = None,
    id: str | UUID | None = None,
    origin: str = "",
) -> Err[AppError]:
    msg = f"{resource} not found" if resource else None
    if msg and id:
        msg += f": {id}"
    return _build(
        ErrorCode.NOT_FOUND,
        msg,
        origin=origin,
        resource=resource,
        id=str(id) if id else None,
    )


def conflict(message: str | None = None, origin: str = "", **details: Any) -> Err[AppError]:
    return _build(ErrorCode.CONFLICT, message, origin=origin, **details)


def already_exists(
    resource: str, identifier: str | None = None, origin: str = ""
) -> Err[AppError]:
    msg = f"{resource} already exists"
    if identifier:
        msg += f": {identifier}"
    return _build(
        ErrorCode.ALREADY_EXISTS,
        msg,
        origin=origin,
        resource=resource,
        identifier=identifier,
    )


# =============================================================================
# Rate Limit Errors
# =============================================================================

def rate_limited(retry_after: float | None = None, origin: str = "") -> Err[AppError]:
    return _build(ErrorCode.RATE_LIMIT_EXCEEDED, origin=origin, retry_after=retry_after)


def too_many_requests(retry_after: float | None = None, origin: str = "") -> Err[AppError]:
    return _build(ErrorCode.TOO_MANY_REQUESTS, origin=origin, retry_after=retry_after)


# =============================================================================
# Business Logic Errors
# =============================================================================

def insufficient_stock(
    product_name: str | None = None,
    available: int | None = None,
    requested: int | None = None,
    origin: str = "inventory",
) -> Err[AppError]:
    return _build(
        ErrorCode.INSUFFICIENT_STOCK,
        f"Insufficient stock for {product_name}" if product_name else None,
        origin=origin,
        product_name=product_name,
        available=available,
        requested=requested,
    )


def payment_failed(reason: str | None = None, origin: str = "payment", **details: Any) -> Err[AppError]:
    return _build(
        ErrorCode.PAYMENT_FAILED,
        f"Payment failed: {reason}" if reason else None,
        origin=origin,
        **details,
    )


def order_cancelled(order_id: str, reason: str | None = None, origin: str = "order") -> Err[AppError]:
    return _build(
        ErrorCode.ORDER_CANCELLED,
        f"Order cancelled: {reason}" if reason else None,
        origin=origin,
        order_id=order_id,
        reason=reason,
    )


def invalid_coupon(
    coupon_code: str | None = None, reason: str | None = None, origin: str = "coupon"
) -> Err[AppError]:
    return _build(
        ErrorCode.INVALID_COUPON,
        reason,
        origin=origin,
        coupon_code=coupon_code,
        reason=reason,
    )


# =============================================================================
# External Service Errors
# =============================================================================

def external_service_error(
    service: str, message: str | None = None, origin: str = "external", **details: Any
) -> Err[AppError]:
    return _build(
        ErrorCode.EXTERNAL_SERVICE_ERROR,
        message or f"{service} service error",
        origin=origin,
        service=service,
        **details,
    )


def payment_gateway_error(
    gateway: str, message: str | None = None, origin: str = "payment", **details: Any
) -> Err[AppError]:
    return _build(
        ErrorCode.PAYMENT_GATEWAY_ERROR,
        message or f"{gateway} gateway error",
        origin=origin,
        gateway=gateway,
        **details,
    )


def email_service_error(
    message: str | None = None, origin: str = "email", cause: BaseException | None = None
) -> Err[AppError]:
    return _build(ErrorCode.EMAIL_SERVICE_ERROR, message, origin=origin, cause=cause)


# =============================================================================
# Internal Errors
# =============================================================================

def internal_error(
    message: str | None = None,
    *,
    origin: str = "",
    cause: BaseException | None = None,
    **details: Any,
) -> Err[AppError]:
    """Create internal/unexpected error. Not operational."""
    return _build(
        ErrorCode.INTERNAL_ERROR,
        message,
        origin=origin,
        cause=cause,
        operational=False,
        **details,
    )


def not_implemented(feature: str | None = None, origin: str = "") -> Err[AppError]:
    return _build(
        ErrorCode.NOT_IMPLEMENTED,
        f"{feature} is not implemented" if feature else None,
        origin=origin,
        feature=feature,
    )
