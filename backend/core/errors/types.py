"""Monadic Error Handling Types

Closed error taxonomy, the immutable AppError value and the internal
Result/Either type used between the repository, service and action layers.

Every ErrorCode has exactly one entry in each of ERROR_MESSAGES,
ERROR_STATUS_CODES and USER_FRIENDLY_MESSAGES. The tables are checked for
totality when this module is imported.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import (
    TYPE_CHECKING, Any, Callable, Generic, Iterator, Mapping, NoReturn,
    TypeVar, Union, final,
)
from uuid import uuid4

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound="AppError")
F = TypeVar("F", bound="AppError")


class ErrorCode(str, Enum):
    """Closed error taxonomy with stable string codes.

    The value of each member is what crosses the wire.
    """
    # Authentication & Authorization
    AUTH_ERROR = "AUTH_ERROR"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    EMAIL_NOT_VERIFIED = "EMAIL_NOT_VERIFIED"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_EMAIL = "INVALID_EMAIL"
    PASSWORD_TOO_WEAK = "PASSWORD_TOO_WEAK"

    # Database
    DATABASE_ERROR = "DATABASE_ERROR"
    DATABASE_CONNECTION_ERROR = "DATABASE_CONNECTION_ERROR"
    QUERY_FAILED = "QUERY_FAILED"
    TRANSACTION_FAILED = "TRANSACTION_FAILED"

    # Resources
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Rate Limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"

    # Business Logic
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    INVALID_COUPON = "INVALID_COUPON"

    # External Services
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    PAYMENT_GATEWAY_ERROR = "PAYMENT_GATEWAY_ERROR"
    EMAIL_SERVICE_ERROR = "EMAIL_SERVICE_ERROR"

    # General
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"

    def __str__(self) -> str:
        return self.value

    @property
    def default_message(self) -> str:
        return get_error_message(self)

    @property
    def status_code(self) -> int:
        return get_status_code(self)

    @property
    def user_message(self) -> str:
        return get_user_friendly_message(self)

    @property
    def category(self) -> str:
        """Human-readable error category."""
        for name, codes in ERROR_CATEGORIES.items():
            if self in codes:
                return name
        return "internal"


# Technical default messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTH_ERROR: "Authentication failed",
    ErrorCode.INVALID_CREDENTIALS: "Invalid email or password",
    ErrorCode.INVALID_TOKEN: "Invalid or expired token",
    ErrorCode.TOKEN_EXPIRED: "Token has expired",
    ErrorCode.EMAIL_NOT_VERIFIED: "Email verification required",
    ErrorCode.UNAUTHORIZED: "Unauthorized access",
    ErrorCode.FORBIDDEN: "Access forbidden",
    ErrorCode.VALIDATION_ERROR: "Validation failed",
    ErrorCode.MISSING_FIELD: "Required field is missing",
    ErrorCode.INVALID_FORMAT: "Invalid format",
    ErrorCode.INVALID_EMAIL: "Invalid email address",
    ErrorCode.PASSWORD_TOO_WEAK: "Password does not meet requirements",
    ErrorCode.DATABASE_ERROR: "Database operation failed",
    ErrorCode.DATABASE_CONNECTION_ERROR: "Database connection failed",
    ErrorCode.QUERY_FAILED: "Query execution failed",
    ErrorCode.TRANSACTION_FAILED: "Transaction failed",
    ErrorCode.NOT_FOUND: "Resource not found",
    ErrorCode.CONFLICT: "Resource conflict",
    ErrorCode.ALREADY_EXISTS: "Resource already exists",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Rate limit exceeded",
    ErrorCode.TOO_MANY_REQUESTS: "Too many requests",
    ErrorCode.INSUFFICIENT_STOCK: "Insufficient stock",
    ErrorCode.PAYMENT_FAILED: "Payment failed",
    ErrorCode.ORDER_CANCELLED: "Order cancelled",
    ErrorCode.INVALID_COUPON: "Invalid or expired coupon",
    ErrorCode.EXTERNAL_SERVICE_ERROR: "External service error",
    ErrorCode.PAYMENT_GATEWAY_ERROR: "Payment gateway error",
    ErrorCode.EMAIL_SERVICE_ERROR: "Email service error",
    ErrorCode.INTERNAL_ERROR: "Internal server error",
    ErrorCode.UNKNOWN_ERROR: "An unexpected error occurred",
    ErrorCode.NOT_IMPLEMENTED: "Feature not implemented",
}

ERROR_STATUS_CODES: dict[ErrorCode, int] = {
    # 400 Bad Request
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.MISSING_FIELD: 400,
    ErrorCode.INVALID_FORMAT: 400,
    ErrorCode.INVALID_EMAIL: 400,
    ErrorCode.PASSWORD_TOO_WEAK: 400,
    ErrorCode.INVALID_COUPON: 400,
    ErrorCode.INSUFFICIENT_STOCK: 400,
    # 401 Unauthorized
    ErrorCode.AUTH_ERROR: 401,
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.INVALID_TOKEN: 401,
    ErrorCode.TOKEN_EXPIRED: 401,
    ErrorCode.UNAUTHORIZED: 401,
    # 403 Forbidden
    ErrorCode.EMAIL_NOT_VERIFIED: 403,
    ErrorCode.FORBIDDEN: 403,
    # 404 Not Found
    ErrorCode.NOT_FOUND: 404,
    # 409 Conflict
    ErrorCode.CONFLICT: 409,
    ErrorCode.ALREADY_EXISTS: 409,
    # 422 Unprocessable Entity
    ErrorCode.ORDER_CANCELLED: 422,
    # 429 Too Many Requests
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.TOO_MANY_REQUESTS: 429,
    # 5xx
    ErrorCode.DATABASE_ERROR: 500,
    ErrorCode.DATABASE_CONNECTION_ERROR: 500,
    ErrorCode.QUERY_FAILED: 500,
    ErrorCode.TRANSACTION_FAILED: 500,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.UNKNOWN_ERROR: 500,
    ErrorCode.NOT_IMPLEMENTED: 501,
    ErrorCode.EXTERNAL_SERVICE_ERROR: 502,
    ErrorCode.PAYMENT_GATEWAY_ERROR: 502,
    ErrorCode.EMAIL_SERVICE_ERROR: 502,
    ErrorCode.PAYMENT_FAILED: 503,
}

# Sanitized text shown to end users
USER_FRIENDLY_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTH_ERROR: "We couldn't sign you in. Please try again.",
    ErrorCode.INVALID_CREDENTIALS: "The email or password you entered is incorrect.",
    ErrorCode.INVALID_TOKEN: "This link is invalid or has already been used.",
    ErrorCode.TOKEN_EXPIRED: "This link has expired. Please request a new one.",
    ErrorCode.EMAIL_NOT_VERIFIED: "Please verify your email address to continue.",
    ErrorCode.UNAUTHORIZED: "Please sign in to continue.",
    ErrorCode.FORBIDDEN: "You don't have permission to do that.",
    ErrorCode.VALIDATION_ERROR: "Please check the highlighted fields and try again.",
    ErrorCode.MISSING_FIELD: "Please fill in all required fields.",
    ErrorCode.INVALID_FORMAT: "Some of the information you entered isn't in the right format.",
    ErrorCode.INVALID_EMAIL: "Please enter a valid email address.",
    ErrorCode.PASSWORD_TOO_WEAK: "Please choose a stronger password.",
    ErrorCode.DATABASE_ERROR: "Something went wrong. Please try again later.",
    ErrorCode.DATABASE_CONNECTION_ERROR: "We're having trouble connecting. Please try again later.",
    ErrorCode.QUERY_FAILED: "Something went wrong. Please try again later.",
    ErrorCode.TRANSACTION_FAILED: "We couldn't save your changes. Please try again.",
    ErrorCode.NOT_FOUND: "We couldn't find what you were looking for.",
    ErrorCode.CONFLICT: "This action conflicts with the current state. Please refresh and try again.",
    ErrorCode.ALREADY_EXISTS: "An account with these details already exists.",
    ErrorCode.RATE_LIMIT_EXCEEDED: "You're doing that too often. Please wait a moment.",
    ErrorCode.TOO_MANY_REQUESTS: "Too many requests. Please wait a moment and try again.",
    ErrorCode.INSUFFICIENT_STOCK: "Sorry, we don't have enough of this item in stock.",
    ErrorCode.PAYMENT_FAILED: "Your payment couldn't be processed. Please try again.",
    ErrorCode.ORDER_CANCELLED: "This order has been cancelled.",
    ErrorCode.INVALID_COUPON: "This coupon is invalid or has expired.",
    ErrorCode.EXTERNAL_SERVICE_ERROR: "A service we depend on is unavailable. Please try again later.",
    ErrorCode.PAYMENT_GATEWAY_ERROR: "Our payment provider is unavailable. Please try again later.",
    ErrorCode.EMAIL_SERVICE_ERROR: "We couldn't send the email. Please try again later.",
    ErrorCode.INTERNAL_ERROR: "Something went wrong. We're working to fix it.",
    ErrorCode.UNKNOWN_ERROR: "Something went wrong. Please try again.",
    ErrorCode.NOT_IMPLEMENTED: "This feature isn't available yet.",
}

ERROR_CATEGORIES: dict[str, frozenset[ErrorCode]] = {
    "auth": frozenset({
        ErrorCode.AUTH_ERROR,
        ErrorCode.INVALID_CREDENTIALS,
        ErrorCode.INVALID_TOKEN,
        ErrorCode.TOKEN_EXPIRED,
        ErrorCode.EMAIL_NOT_VERIFIED,
        ErrorCode.UNAUTHORIZED,
        ErrorCode.FORBIDDEN,
    }),
    "validation": frozenset({
        ErrorCode.VALIDATION_ERROR,
        ErrorCode.MISSING_FIELD,
        ErrorCode.INVALID_FORMAT,
        ErrorCode.INVALID_EMAIL,
        ErrorCode.PASSWORD_TOO_WEAK,
    }),
    "database": frozenset({
        ErrorCode.DATABASE_ERROR,
        ErrorCode.DATABASE_CONNECTION_ERROR,
        ErrorCode.QUERY_FAILED,
        ErrorCode.TRANSACTION_FAILED,
    }),
    "resource": frozenset({
        ErrorCode.NOT_FOUND,
        ErrorCode.CONFLICT,
        ErrorCode.ALREADY_EXISTS,
    }),
    "rate_limit": frozenset({
        ErrorCode.RATE_LIMIT_EXCEEDED,
        ErrorCode.TOO_MANY_REQUESTS,
    }),
    "business": frozenset({
        ErrorCode.INSUFFICIENT_STOCK,
        ErrorCode.PAYMENT_FAILED,
        ErrorCode.ORDER_CANCELLED,
        ErrorCode.INVALID_COUPON,
    }),
    "external": frozenset({
        ErrorCode.EXTERNAL_SERVICE_ERROR,
        ErrorCode.PAYMENT_GATEWAY_ERROR,
        ErrorCode.EMAIL_SERVICE_ERROR,
    }),
}


def _assert_total(name: str, table: Mapping[ErrorCode, Any]) -> None:
    missing = [code.value for code in ErrorCode if code not in table]
    if missing:
        raise AssertionError(f"{name} is missing entries for: {', '.join(missing)}")


_assert_total("ERROR_MESSAGES", ERROR_MESSAGES)
_assert_total("ERROR_STATUS_CODES", ERROR_STATUS_CODES)
_assert_total("USER_FRIENDLY_MESSAGES", USER_FRIENDLY_MESSAGES)


def _lookup(table: Mapping[ErrorCode, Any], code: ErrorCode, name: str) -> Any:
    # A miss here is a programming error, not a runtime condition
    if code not in table:
        raise AssertionError(f"{code!r} has no entry in {name}")
    return table[code]


def get_status_code(code: ErrorCode) -> int:
    """HTTP status for an error code."""
    return _lookup(ERROR_STATUS_CODES, code, "ERROR_STATUS_CODES")


def get_error_message(code: ErrorCode) -> str:
    """Default technical message for an error code."""
    return _lookup(ERROR_MESSAGES, code, "ERROR_MESSAGES")


def get_user_friendly_message(code: ErrorCode) -> str:
    """Sanitized message safe to show to end users."""
    return _lookup(USER_FRIENDLY_MESSAGES, code, "USER_FRIENDLY_MESSAGES")


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Immutable context for error tracing and debugging."""
    correlation_id: str = field(default_factory=lambda: str(uuid4())[:8])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    origin: str = ""
    user_id: str | None = None
    request_id: str | None = None

    def with_origin(self, origin: str) -> ErrorContext:
        return replace(self, origin=origin)


@dataclass(frozen=True, slots=True, init=False)
class AppError:
    """Application error value.

    - code: member of the closed ErrorCode taxonomy
    - message: technical message, defaults to ERROR_MESSAGES[code]
    - details: optional structured payload
    - field_errors: optional per-field messages for form validation
    - status_code: derived from the taxonomy, never passed in

    Equality only considers code, message and details.
    """
    code: ErrorCode
    message: str
    details: Any = None
    field_errors: Mapping[str, str] | None = field(default=None, compare=False)
    context: ErrorContext = field(default_factory=ErrorContext, compare=False)
    cause: BaseException | None = field(default=None, compare=False, repr=False)
    operational: bool = field(default=True, compare=False)

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        details: Any = None,
        *,
        field_errors: Mapping[str, str] | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
        operational: bool = True,
    ) -> None:
        code = ErrorCode(code)
        object.__setattr__(self, "code", code)
        object.__setattr__(self, "message", message if message is not None else get_error_message(code))
        object.__setattr__(self, "details", details)
        object.__setattr__(
            self, "field_errors", MappingProxyType(dict(field_errors)) if field_errors else None
        )
        object.__setattr__(self, "context", context or ErrorContext())
        object.__setattr__(self, "cause", cause)
        object.__setattr__(self, "operational", operational)

    __hash__ = None  # details may be unhashable

    @property
    def status_code(self) -> int:
        return get_status_code(self.code)

    @property
    def user_message(self) -> str:
        return get_user_friendly_message(self.code)

    @property
    def error_id(self) -> str:
        """Unique identifier for this error instance."""
        return f"{self.code.value}:{self.context.correlation_id}"

    def _copy(self, **changes: Any) -> AppError:
        values = {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "field_errors": self.field_errors,
            "context": self.context,
            "cause": self.cause,
            "operational": self.operational,
        }
        values.update(changes)
        return AppError(**values)

    def with_context(self, **kwargs: Any) -> AppError:
        """Create new error with updated context."""
        return self._copy(context=replace(self.context, **kwargs))

    def with_details(self, details: Any) -> AppError:
        return self._copy(details=details)

    def chain(self, cause: BaseException) -> AppError:
        """Chain this error with a cause."""
        return self._copy(cause=cause)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and internal transport."""
        data: dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
            "status": self.status_code,
            "category": self.code.category,
            "context": self.context.origin or None,
            "correlation_id": self.context.correlation_id,
            "timestamp": self.context.timestamp.isoformat(),
        }
        if self.details is not None:
            data["details"] = self.details
        if self.field_errors:
            data["field_errors"] = dict(self.field_errors)
        return data

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message} (correlation_id={self.context.correlation_id})"


class AppErrorException(Exception):
    """Exception wrapper for AppError.

    Use this when you need to raise an AppError in code that
    doesn't use Result (e.g., FastAPI dependencies, service guards).
    """

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))


def _as_app_error(error: object) -> AppError | None:
    if isinstance(error, AppErrorException):
        return error.error
    return error if isinstance(error, AppError) else None


def is_error_code(error: object, code: ErrorCode) -> bool:
    app_error = _as_app_error(error)
    return app_error is not None and app_error.code is code


def is_auth_error(error: object) -> bool:
    app_error = _as_app_error(error)
    return app_error is not None and app_error.code in ERROR_CATEGORIES["auth"]


def is_validation_error(error: object) -> bool:
    app_error = _as_app_error(error)
    return app_error is not None and app_error.code in ERROR_CATEGORIES["validation"]


def is_operational_error(error: object) -> bool:
    """Expected, handled failures (bad input, missing records, ...)."""
    app_error = _as_app_error(error)
    return app_error is not None and app_error.operational


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_or_else(self, f: Callable[[AppError], T]) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U, AppError]:
        return Ok(f(self.value))

    def map_err(self, f: Callable[[AppError], F]) -> Result[T, F]:
        return self  # type: ignore

    def flat_map(self, f: Callable[[T], Result[U, AppError]]) -> Result[U, AppError]:
        """Chain operations that may fail."""
        return f(self.value)

    and_then = flat_map

    def match(self, ok: Callable[[T], U], err: Callable[[AppError], U]) -> U:
        return ok(self.value)

    async def flat_map_async(
        self, f: Callable[[T], Awaitable[Result[U, AppError]]]
    ) -> Result[U, AppError]:
        return await f(self.value)

    def __iter__(self) -> Iterator[T]:
        yield self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result. Wraps an AppError."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_or_else(self, f: Callable[[E], T]) -> T:
        return f(self.error)

    def unwrap_err(self) -> E:
        return self.error

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        return self  # type: ignore

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        return Err(f(self.error))

    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        return self  # type: ignore

    and_then = flat_map

    def match(self, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        return err(self.error)

    async def flat_map_async(
        self, f: Callable[[T], Awaitable[Result[U, E]]]
    ) -> Result[U, E]:
        return self  # type: ignore

    def __iter__(self) -> Iterator:
        return iter([])


Result = Union[Ok[T], Err[E]]


def from_exception(
    exc: BaseException,
    code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    message: str | None = None,
    origin: str = "",
    details: Any = None,
) -> Err[AppError]:
    """Convert exception to Err, keeping it as the cause."""
    return Err(AppError(
        code,
        message or str(exc) or None,
        details,
        context=ErrorContext(origin=origin),
        cause=exc,
        operational=code is not ErrorCode.INTERNAL_ERROR,
    ))


def try_result(
    f: Callable[[], T],
    code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    origin: str = "",
) -> Result[T, AppError]:
    try:
        return Ok(f())
    except Exception as e:
        return from_exception(e, code=code, origin=origin)


async def try_result_async(
    f: Callable[[], Awaitable[T]],
    code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    origin: str = "",
) -> Result[T, AppError]:
    try:
        return Ok(await f())
    except Exception as e:
        return from_exception(e, code=code, origin=origin)


def sequence_results(results: list[Result[T, AppError]]) -> Result[list[T], AppError]:
    """Sequence Results, failing fast on first error."""
    values: list[T] = []
    for r in results:
        match r:
            case Ok(v):
                values.append(v)
            case Err(e):
                return Err(e)
    return Ok(values)


def ensure(condition: bool, error: AppError) -> Result[None, AppError]:
    """Guard function that returns Err if condition is False."""
    return Ok(None) if condition else Err(error)


def require(value: T | None, error: AppError) -> Result[T, AppError]:
    """Convert nullable to Result, returning Err if None."""
    return Ok(value) if value is not None else Err(error)
