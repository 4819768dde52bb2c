"""User Repository

Every function is wrapped by ``with_repository``: SQLAlchemy failures come
back as ``Err(AppError)``, plain return values as ``Ok``. Lookups return
``Ok(None)`` when nothing matches. Writes only flush; committing is up to
the caller (see ``core.database.run_in_transaction``).
"""
from collections.abc import Mapping
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import with_repository, not_found, validation_error
from core.security import utcnow
from models.user import User, CreateUserData


@with_repository("users.get_by_email")
async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


@with_repository("users.get_by_id")
async def get_user_by_id(session: AsyncSession, user_id: UUID) -> User | None:
    return await session.get(User, user_id)


@with_repository("users.get_by_reset_token")
async def get_user_by_reset_token(session: AsyncSession, token: str) -> User | None:
    """Only matches tokens that have not expired yet."""
    result = await session.execute(
        select(User).where(
            User.reset_token == token,
            User.reset_token_expiry > utcnow(),
        )
    )
    return result.scalar_one_or_none()


@with_repository("users.create")
async def create_user(session: AsyncSession, data: CreateUserData) -> User:
    user = User(name=data.name, email=data.email, password=data.password)
    session.add(user)
    await session.flush()
    return user


@with_repository("users.update_reset_token")
async def update_user_reset_token(
    session: AsyncSession, user_id: UUID, reset_token: str, reset_token_expiry: datetime
):
    user = await session.get(User, user_id)
    if user is None:
        return not_found("User", user_id, origin="users.update_reset_token")
    user.reset_token = reset_token
    user.reset_token_expiry = reset_token_expiry
    await session.flush()
    return user


@with_repository("users.update_password")
async def update_user_password(session: AsyncSession, user_id: UUID, hashed_password: str):
    """Store a new password hash and invalidate any pending reset token."""
    user = await session.get(User, user_id)
    if user is None:
        return not_found("User", user_id, origin="users.update_password")
    user.password = hashed_password
    user.reset_token = None
    user.reset_token_expiry = None
    await session.flush()
    return user


@with_repository("users.verify_email")
async def verify_user_email(session: AsyncSession, email: str):
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        return not_found("User", email, origin="users.verify_email")
    user.email_verified = utcnow()
    await session.flush()
    return user


PROFILE_FIELDS = frozenset({"name", "phone", "image"})


@with_repository("users.update_profile")
async def update_user_profile(session: AsyncSession, user_id: UUID, changes: Mapping[str, str | None]):
    """Apply the given profile fields. Keys outside PROFILE_FIELDS are rejected."""
    unknown = set(changes) - PROFILE_FIELDS
    if unknown:
        return validation_error(
            f"Not a profile field: {', '.join(sorted(unknown))}", origin="users.update_profile"
        )
    user = await session.get(User, user_id)
    if user is None:
        return not_found("User", user_id, origin="users.update_profile")
    for name, value in changes.items():
        setattr(user, name, value)
    await session.flush()
    return user
