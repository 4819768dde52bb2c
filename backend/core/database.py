"""Database Module with Monadic Error Handling

Async engine and session management plus a Result-returning transaction
helper. SQLAlchemy exceptions never escape ``run_in_transaction``;
they are mapped to AppError by DatabaseErrorMapper.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar
from uuid import UUID as PyUUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy.types import TypeDecorator, CHAR
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

from core.config import settings
from core.errors import (
    AppError,
    Ok,
    Err,
    Result,
    DatabaseErrorMapper,
)
from core.logging import db_logger

T = TypeVar("T")

log = db_logger()


class GUID(TypeDecorator):
    """Platform-agnostic GUID type.

    Uses PostgreSQL's UUID type when available, otherwise stores as CHAR(32).
    """
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == "postgresql":
            return value
        if isinstance(value, PyUUID):
            return value.hex
        return PyUUID(value).hex

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, PyUUID):
            return value
        return PyUUID(value)


engine_kwargs = {
    "echo": settings.LOG_SQL,
}

if "sqlite" in settings.DATABASE_URL:
    # aiosqlite connections are bound to the loop that opened them
    engine_kwargs["poolclass"] = NullPool
else:
    engine_kwargs.update({
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
    })

engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_kwargs
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency that yields database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Context manager for database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def run_in_transaction(
    session: AsyncSession,
    fn: Callable[[AsyncSession], Awaitable[T]],
    origin: str = "database.transaction",
) -> Result[T, AppError]:
    """Run ``fn`` in one transaction. Commits on success, rolls back otherwise.

    ``fn`` may return a Result; an Err result also rolls back.
    """
    mapper = DatabaseErrorMapper(origin)
    try:
        value = await fn(session)
        if isinstance(value, Err):
            await session.rollback()
            return mapper.map_result(value)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        error = mapper.map_exception(e)
        log.error("transaction_failed", origin=origin, error_code=error.code.value, error=str(e))
        return Err(error)
    if isinstance(value, Ok):
        return value
    return Ok(value)
