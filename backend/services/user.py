"""User Profile Service

Profile reads and edits plus password changes for an existing account.
Callers identify the account by id; establishing who that is happens
upstream.
"""
import asyncio
from collections.abc import Mapping
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.database import run_in_transaction
from core.errors import AppError, Ok, Result, not_found, unauthorized, with_service
from core.logging import auth_logger
from core.security import compare_password, hash_password
from models.user import User
from repositories import users

log = auth_logger()


@with_service("user.get_profile")
async def get_user_profile(session: AsyncSession, user_id: UUID) -> Result[User, AppError]:
    found = await users.get_user_by_id(session, user_id)
    if found.is_err():
        return found
    if found.unwrap() is None:
        return not_found("User", user_id, origin="user.get_profile")
    return found


@with_service("user.update_profile")
async def update_user_profile(
    session: AsyncSession, user_id: UUID, changes: Mapping[str, str | None]
) -> Result[User, AppError]:
    """Apply ``changes`` (name, phone, image) and return the updated user."""
    result = await run_in_transaction(
        session,
        lambda s: users.update_user_profile(s, user_id, changes),
        origin="user.update_profile",
    )
    if result.is_ok():
        log.info("profile_updated", user_id=str(user_id), fields=sorted(changes))
    return result


@with_service("user.change_password")
async def change_password(
    session: AsyncSession, user_id: UUID, current_password: str, new_password: str
) -> Result[str, AppError]:
    found = await users.get_user_by_id(session, user_id)
    if found.is_err():
        return found

    user = found.unwrap()
    if user is None or not user.password:
        return not_found("User", user_id, origin="user.change_password")

    if not await asyncio.to_thread(compare_password, current_password, user.password):
        log.info("password_change_rejected", user_id=str(user_id), reason="bad_password")
        return unauthorized("Current password is incorrect", origin="user.change_password")

    hashed = await asyncio.to_thread(hash_password, new_password)
    updated = await run_in_transaction(
        session,
        lambda s: users.update_user_password(s, user_id, hashed),
        origin="user.change_password",
    )
    if updated.is_err():
        return updated

    log.info("password_changed", user_id=str(user_id))
    return Ok("Password changed successfully")
