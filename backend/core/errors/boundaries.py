"""Error Boundary Mappers

Module boundary error mapping. Exceptions raised below a boundary
(SQLAlchemy, pydantic, stray bugs) are mapped to AppError there, so
nothing above the boundary ever sees a raw exception or its message.
"""
from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic, ParamSpec, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import (
    IntegrityError,
    NoResultFound,
    OperationalError,
    SQLAlchemyError,
)

from core.logging import get_logger

from .builders import (
    already_exists,
    db_connection_failed,
    db_error,
    internal_error,
    not_found,
    validation_error,
)
from .responses import ActionResponse, action_from_error
from .types import AppError, AppErrorException, Err, Ok, Result

T = TypeVar("T")
P = ParamSpec("P")

log = get_logger("errors.boundaries")


class ErrorMapper(ABC, Generic[T]):
    """Abstract base for error mappers at module boundaries."""

    def __init__(self, origin: str):
        self.origin = origin

    @abstractmethod
    def map_exception(self, exc: Exception) -> AppError:
        """Map an exception raised below the boundary."""

    def map_error(self, error: AppError) -> AppError:
        """Stamp an already-mapped error with this boundary's origin."""
        if error.context.origin:
            return error
        return error.with_context(origin=self.origin)

    def map_result(self, result: Result[T, AppError]) -> Result[T, AppError]:
        """Map errors in Result while preserving success values."""
        match result:
            case Ok(_):
                return result
            case Err(e):
                return Err(self.map_error(e))


class DatabaseErrorMapper(ErrorMapper[T]):
    """Maps SQLAlchemy exceptions to application error codes."""

    def __init__(self, origin: str = "database"):
        super().__init__(origin)

    def map_exception(self, exc: Exception) -> AppError:
        if isinstance(exc, IntegrityError):
            return self._map_integrity_error(exc)
        if isinstance(exc, NoResultFound):
            return not_found("Record", origin=self.origin).error
        if isinstance(exc, OperationalError):
            return db_connection_failed(origin=self.origin, cause=exc).error
        if isinstance(exc, SQLAlchemyError):
            return db_error(origin=self.origin, cause=exc).error
        return map_exception(exc, self.origin)

    def _map_integrity_error(self, exc: IntegrityError) -> AppError:
        message = str(exc.orig) if exc.orig else str(exc)
        lowered = message.lower()

        if "unique" in lowered or "duplicate key" in lowered:
            field = _constraint_field(message)
            return already_exists(
                "Record",
                identifier=field,
                origin=self.origin,
            ).error.chain(exc)

        if "foreign key" in lowered:
            return validation_error(
                "Related record not found",
                origin=self.origin,
            ).error.chain(exc)

        return db_error(
            f"Constraint violation: {message}",
            origin=self.origin,
            cause=exc,
        ).error


def _constraint_field(message: str) -> str | None:
    """Pull the column name out of a unique-constraint message.

    SQLite: "UNIQUE constraint failed: users.email"
    PostgreSQL: 'duplicate key value violates unique constraint "users_email_key"'
    """
    if "constraint failed:" in message:
        column = message.split("constraint failed:", 1)[1].strip().split(",")[0]
        return column.rsplit(".", 1)[-1] or None
    if "Key (" in message:
        return message.split("Key (", 1)[1].split(")", 1)[0] or None
    return None


class ValidationErrorMapper(ErrorMapper[T]):
    """Maps pydantic validation errors to field-level messages."""

    def __init__(self, origin: str = "validation"):
        super().__init__(origin)

    def map_exception(self, exc: Exception) -> AppError:
        if hasattr(exc, "errors"):
            return validation_error(
                field_errors=self.field_errors(exc.errors()),
                origin=self.origin,
            ).error
        return map_exception(exc, self.origin)

    @staticmethod
    def field_errors(errors: list[dict[str, Any]]) -> dict[str, str]:
        """First message per field, keyed by dotted path.

        FastAPI prefixes request locations with "body"/"query"/"path";
        those are dropped.
        """
        result: dict[str, str] = {}
        for err in errors:
            loc = [str(part) for part in err.get("loc", ())]
            if loc and loc[0] in ("body", "query", "path", "header", "cookie"):
                loc = loc[1:]
            field = ".".join(loc) or "__root__"
            msg = err.get("msg", "Invalid value")
            # pydantic prefixes messages raised from validators
            if msg.startswith("Value error, "):
                msg = msg[len("Value error, "):]
            result.setdefault(field, msg)
        return result


def map_exception(exc: BaseException, origin: str = "") -> AppError:
    """Convert any exception to an AppError."""
    if isinstance(exc, AppErrorException):
        error = exc.error
        return error if error.context.origin else error.with_context(origin=origin)
    if isinstance(exc, PydanticValidationError):
        return ValidationErrorMapper(origin).map_exception(exc)
    if isinstance(exc, SQLAlchemyError):
        return DatabaseErrorMapper(origin).map_exception(exc)
    return internal_error(
        str(exc) or type(exc).__name__,
        origin=origin,
        cause=exc,
        exception_type=type(exc).__name__,
    ).error


def _log_boundary_error(layer: str, error: AppError) -> None:
    log_method = log.warning if error.operational and error.status_code < 500 else log.error
    log_method(
        f"{layer}_error",
        error_code=error.code.value,
        status=error.status_code,
        message=error.message,
        origin=error.context.origin,
        correlation_id=error.context.correlation_id,
        details=error.details,
        exc_info=error.cause if not error.operational else None,
    )


def map_errors(mapper: ErrorMapper[T], layer: str = "boundary"):
    """Decorator to map errors at function boundaries.

    Exceptions become Err, Err results get the mapper's origin, and plain
    return values are wrapped in Ok.

    Usage:
        @map_errors(DatabaseErrorMapper("user_repository"))
        async def get_user(session, user_id) -> Result[User, AppError]:
            ...
    """
    def decorator(fn: Callable[P, Awaitable[Any]]) -> Callable[P, Awaitable[Result[Any, AppError]]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[Any, AppError]:
            try:
                result = await fn(*args, **kwargs)
            except Exception as e:
                error = mapper.map_exception(e)
                _log_boundary_error(layer, error)
                return Err(error)
            if isinstance(result, (Ok, Err)):
                return mapper.map_result(result)
            return Ok(result)
        return wrapper
    return decorator


class _OriginMapper(ErrorMapper[T]):
    """Maps anything via the unified mapper."""

    def map_exception(self, exc: Exception) -> AppError:
        return map_exception(exc, self.origin)


def with_repository(origin: str = "repository"):
    """Database boundary: SQLAlchemy failures become Err.

    Usage:
        @with_repository("users.get_by_email")
        async def get_user_by_email(session, email) -> User | None:
            ...
    """
    return map_errors(DatabaseErrorMapper(origin), layer="repository")


def with_service(origin: str = "service"):
    """Service boundary: raised AppErrorException and bugs become Err."""
    return map_errors(_OriginMapper(origin), layer="service")


def with_action(origin: str = "action"):
    """Action boundary: any exception becomes a failed ActionResponse.

    The wrapped callable must itself return an ActionResponse.
    """
    def decorator(
        fn: Callable[P, Awaitable[ActionResponse[Any]]],
    ) -> Callable[P, Awaitable[ActionResponse[Any]]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> ActionResponse[Any]:
            try:
                return await fn(*args, **kwargs)
            except Exception as e:
                error = map_exception(e, origin)
                _log_boundary_error("action", error)
                return action_from_error(error)
        return wrapper
    return decorator
