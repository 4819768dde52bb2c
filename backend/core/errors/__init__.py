"""Application Error & Result Model

Every server-side operation funnels its outcome through this package:

- ErrorCode: closed taxonomy with default message, HTTP status and
  user-facing text per code
- AppError: immutable error value (status derived from its code)
- Result[T, AppError]: Ok | Err, used between repositories, services
  and actions
- ok() / fail(): ApiResponse envelopes returned at the API boundary
- ActionResponse: envelope for form actions with per-field errors

Usage:
    from core.errors import Ok, Err, Result, AppError, not_found, ok, fail_from_error

    async def find_product(session, slug) -> Result[Product, AppError]:
        product = await session.scalar(select(Product).where(Product.slug == slug))
        if product is None:
            return not_found("Product", slug, origin="catalog")
        return Ok(product)

    match await find_product(db, "silk-scarf"):
        case Ok(product):
            return ok(product)
        case Err(error):
            return fail_from_error(error)
"""
from .types import (
    # Taxonomy
    ErrorCode,
    ERROR_MESSAGES,
    ERROR_STATUS_CODES,
    USER_FRIENDLY_MESSAGES,
    ERROR_CATEGORIES,
    get_status_code,
    get_error_message,
    get_user_friendly_message,
    # Core types
    AppError,
    AppErrorException,
    ErrorContext,
    Result,
    Ok,
    Err,
    # Guards
    is_error_code,
    is_auth_error,
    is_validation_error,
    is_operational_error,
    # Constructors & combinators
    from_exception,
    try_result,
    try_result_async,
    sequence_results,
    ensure,
    require,
)

from .builders import (
    # Validation
    validation_error,
    missing_field,
    invalid_format,
    invalid_email,
    weak_password,
    # Auth
    auth_error,
    invalid_credentials,
    invalid_token,
    token_expired,
    email_not_verified,
    unauthorized,
    forbidden,
    # Database
    db_error,
    db_connection_failed,
    query_failed,
    transaction_failed,
    # Resources
    not_found,
    conflict,
    already_exists,
    # Rate limiting
    rate_limited,
    too_many_requests,
    # Business
    insufficient_stock,
    payment_failed,
    order_cancelled,
    invalid_coupon,
    # External
    external_service_error,
    payment_gateway_error,
    email_service_error,
    # Internal
    internal_error,
    not_implemented,
)

from .responses import (
    ApiError,
    ApiSuccess,
    ApiFailure,
    ApiResponse,
    ActionResponse,
    ok,
    fail,
    is_ok,
    is_fail,
    fail_from_error,
    from_result,
    action_ok,
    action_fail,
    action_from_error,
    action_from_result,
)

from .boundaries import (
    ErrorMapper,
    DatabaseErrorMapper,
    ValidationErrorMapper,
    map_exception,
    map_errors,
    with_repository,
    with_service,
    with_action,
)

from .handlers import (
    register_error_handlers,
    error_response,
    envelope_response,
    raise_error,
)

__all__ = [
    # Taxonomy
    "ErrorCode",
    "ERROR_MESSAGES",
    "ERROR_STATUS_CODES",
    "USER_FRIENDLY_MESSAGES",
    "ERROR_CATEGORIES",
    "get_status_code",
    "get_error_message",
    "get_user_friendly_message",
    # Core types
    "AppError",
    "AppErrorException",
    "ErrorContext",
    "Result",
    "Ok",
    "Err",
    "is_error_code",
    "is_auth_error",
    "is_validation_error",
    "is_operational_error",
    "from_exception",
    "try_result",
    "try_result_async",
    "sequence_results",
    "ensure",
    "require",
    # Builders
    "validation_error",
    "missing_field",
    "invalid_format",
    "invalid_email",
    "weak_password",
    "auth_error",
    "invalid_credentials",
    "invalid_token",
    "token_expired",
    "email_not_verified",
    "unauthorized",
    "forbidden",
    "db_error",
    "db_connection_failed",
    "query_failed",
    "transaction_failed",
    "not_found",
    "conflict",
    "already_exists",
    "rate_limited",
    "too_many_requests",
    "insufficient_stock",
    "payment_failed",
    "order_cancelled",
    "invalid_coupon",
    "external_service_error",
    "payment_gateway_error",
    "email_service_error",
    "internal_error",
    "not_implemented",
    # Envelopes
    "ApiError",
    "ApiSuccess",
    "ApiFailure",
    "ApiResponse",
    "ActionResponse",
    "ok",
    "fail",
    "is_ok",
    "is_fail",
    "fail_from_error",
    "from_result",
    "action_ok",
    "action_fail",
    "action_from_error",
    "action_from_result",
    # Boundaries
    "ErrorMapper",
    "DatabaseErrorMapper",
    "ValidationErrorMapper",
    "map_exception",
    "map_errors",
    "with_repository",
    "with_service",
    "with_action",
    # Handlers
    "register_error_handlers",
    "error_response",
    "envelope_response",
    "raise_error",
]
