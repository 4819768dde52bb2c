"""Response Envelopes

The serialized shapes every server-side operation returns to its caller.

ApiResponse[T] is a tagged union: ApiSuccess carries only ``data`` and
ApiFailure carries only ``error``. ActionResponse is the flatter envelope
used by form actions that report per-field validation errors.

Usage:
    from core.errors import ok, fail, fail_from_error

    def lookup(...) -> ApiResponse[Product]:
        match await get_product(db, slug):
            case Ok(product):
                return ok(product)
            case Err(error):
                return fail_from_error(error)

``fail`` takes ``code`` as a plain string. This is where the closed
ErrorCode enumeration is widened for transport: an ErrorCode passed in is
stored by its value, and any other string is accepted unchecked.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Generic, Literal, Mapping, TypeVar, Union

from .types import AppError, Err, ErrorCode, Ok, Result

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ApiError:
    """Transport form of an error. ``code`` is a free-form string."""
    message: str
    code: str | None = None
    details: Any = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"message": self.message}
        if self.code is not None:
            data["code"] = self.code
        if self.details is not None:
            data["details"] = self.details
        return data


@dataclass(frozen=True, slots=True)
class ApiSuccess(Generic[T]):
    data: T

    @property
    def success(self) -> Literal[True]:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "data": self.data}


@dataclass(frozen=True, slots=True)
class ApiFailure:
    error: ApiError

    @property
    def success(self) -> Literal[False]:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.error.to_dict()}


ApiResponse = Union[ApiSuccess[T], ApiFailure]


def ok(data: T) -> ApiSuccess[T]:
    """Wrap ``data`` unchanged in a success envelope."""
    return ApiSuccess(data)


def fail(message: str, code: ErrorCode | str | None = None, details: Any = None) -> ApiFailure:
    """Build a failure envelope. There is never a ``data`` field."""
    if isinstance(code, ErrorCode):
        code = code.value
    return ApiFailure(ApiError(message=message, code=code, details=details))


def is_ok(response: ApiResponse[T]) -> bool:
    return isinstance(response, ApiSuccess)


def is_fail(response: ApiResponse[T]) -> bool:
    return isinstance(response, ApiFailure)


def _public_details(error: AppError) -> Any:
    # Server-side failures keep their details in the logs only
    if error.status_code >= 500:
        return None
    if error.field_errors:
        base = error.details if isinstance(error.details, Mapping) else {}
        return {**base, "field_errors": dict(error.field_errors)}
    return error.details


def fail_from_error(error: AppError) -> ApiFailure:
    """Translate an AppError into a user-safe failure envelope."""
    return fail(error.user_message, error.code, _public_details(error))


def from_result(result: Result[T, AppError]) -> ApiResponse[T]:
    match result:
        case Ok(value):
            return ok(value)
        case Err(error):
            return fail_from_error(error)


@dataclass(frozen=True, slots=True)
class ActionResponse(Generic[T]):
    """Envelope for form actions.

    A failed action never carries ``data`` and a successful one never
    carries ``field_errors``.
    """
    success: bool
    message: str
    field_errors: Mapping[str, str] | None = None
    data: T | None = None

    def __post_init__(self) -> None:
        if self.field_errors is not None:
            frozen = MappingProxyType(dict(self.field_errors)) if self.field_errors else None
            object.__setattr__(self, "field_errors", frozen)
        if not self.success and self.data is not None:
            raise ValueError("A failed ActionResponse cannot carry data")
        if self.success and self.field_errors:
            raise ValueError("A successful ActionResponse cannot carry field errors")

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.field_errors:
            out["field_errors"] = dict(self.field_errors)
        if self.success and self.data is not None:
            out["data"] = self.data
        return out


def action_ok(message: str, data: T | None = None) -> ActionResponse[T]:
    return ActionResponse(success=True, message=message, data=data)


def action_fail(message: str, field_errors: Mapping[str, str] | None = None) -> ActionResponse[Any]:
    return ActionResponse(
        success=False,
        message=message,
        field_errors=field_errors,
    )


def action_from_error(error: AppError) -> ActionResponse[Any]:
    """Translate an AppError into a user-safe failed action."""
    return action_fail(error.user_message, error.field_errors)


def action_from_result(result: Result[T, AppError], message: str) -> ActionResponse[T]:
    match result:
        case Ok(value):
            return action_ok(message, value)
        case Err(error):
            return action_from_error(error)
