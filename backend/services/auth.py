"""Authentication Service

Sign-up, sign-in, password reset and email verification. Every operation
returns a ``Result``; expected failures are ``Err(AppError)`` with a code
from the taxonomy and nothing raises past the ``with_service`` boundary.

bcrypt is CPU-bound, so hashing and comparison run in a worker thread.
"""
import asyncio
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from core.database import run_in_transaction
from core.errors import (
    AppError,
    Ok,
    Err,
    Result,
    with_service,
    already_exists,
    invalid_credentials,
    invalid_token,
    token_expired,
    email_not_verified,
)
from core.logging import auth_logger
from core.security import (
    compare_password,
    generate_auth_token,
    get_auth_token_expiration,
    hash_password,
    utcnow,
)
from models.user import User, CreateUserData, CreateVerificationTokenData
from repositories import tokens, users
from services.mail import Mailer

log = auth_logger()

FORGOT_PASSWORD_MESSAGE = "If the email exists, a reset link has been sent"


async def _deliver(send: Callable[[str, str], Awaitable[None]], email: str, token: str) -> None:
    # Delivery problems must not undo a committed signup or reset request
    try:
        await send(email, token)
    except Exception as e:
        log.exception("mail_delivery_failed", to=email, error_type=type(e).__name__)


@with_service("auth.signup")
async def signup_user(
    session: AsyncSession, mailer: Mailer, name: str, email: str, password: str
) -> Result[User, AppError]:
    """Create an unverified user and send a verification link."""
    match await users.get_user_by_email(session, email):
        case Err() as failure:
            return failure
        case Ok(existing) if existing is not None:
            log.info("signup_rejected", reason="email_taken")
            return already_exists("Email", origin="auth.signup")

    hashed = await asyncio.to_thread(hash_password, password)
    token = generate_auth_token()

    async def create(s: AsyncSession):
        user = await users.create_user(s, CreateUserData(name=name, email=email, password=hashed))
        if user.is_err():
            return user
        created = await tokens.create_verification_token(
            s,
            CreateVerificationTokenData(
                identifier=email, token=token, expires=get_auth_token_expiration()
            ),
        )
        return created.map(lambda _: user.unwrap())

    result = await run_in_transaction(session, create, origin="auth.signup")
    if result.is_err():
        return result

    log.info("user_signed_up", user_id=str(result.unwrap().id))
    await _deliver(mailer.send_verification_email, email, token)
    return result


@with_service("auth.signin")
async def signin_user(session: AsyncSession, email: str, password: str) -> Result[User, AppError]:
    """Check credentials. Unknown email and wrong password are indistinguishable."""
    found = await users.get_user_by_email(session, email)
    if found.is_err():
        return found

    user = found.unwrap()
    if user is None or not user.password:
        return invalid_credentials(origin="auth.signin")

    if not await asyncio.to_thread(compare_password, password, user.password):
        log.info("signin_rejected", user_id=str(user.id), reason="bad_password")
        return invalid_credentials(origin="auth.signin")

    if not user.is_verified:
        return email_not_verified(origin="auth.signin")

    log.info("user_signed_in", user_id=str(user.id))
    return Ok(user)


@with_service("auth.forgot_password")
async def forgot_password(session: AsyncSession, mailer: Mailer, email: str) -> Result[str, AppError]:
    """Issue a reset token when the email is known.

    The answer is the same whether or not the account exists.
    """
    found = await users.get_user_by_email(session, email)
    if found.is_err():
        return found

    user = found.unwrap()
    if user is None:
        return Ok(FORGOT_PASSWORD_MESSAGE)

    token = generate_auth_token()
    expires = get_auth_token_expiration()
    updated = await run_in_transaction(
        session,
        lambda s: users.update_user_reset_token(s, user.id, token, expires),
        origin="auth.forgot_password",
    )
    if updated.is_err():
        return updated

    log.info("password_reset_requested", user_id=str(user.id))
    await _deliver(mailer.send_reset_password_email, email, token)
    return Ok(FORGOT_PASSWORD_MESSAGE)


@with_service("auth.reset_password")
async def reset_password(session: AsyncSession, token: str, password: str) -> Result[str, AppError]:
    found = await users.get_user_by_reset_token(session, token)
    if found.is_err():
        return found

    user = found.unwrap()
    if user is None:
        return invalid_token("Invalid or expired token", origin="auth.reset_password")

    hashed = await asyncio.to_thread(hash_password, password)
    updated = await run_in_transaction(
        session,
        lambda s: users.update_user_password(s, user.id, hashed),
        origin="auth.reset_password",
    )
    if updated.is_err():
        return updated

    log.info("password_reset", user_id=str(user.id))
    return Ok("Password reset successful")


@with_service("auth.verify_email")
async def verify_email(session: AsyncSession, token: str) -> Result[str, AppError]:
    """Mark the token's user as verified and consume the token."""
    found = await tokens.get_verification_token(session, token)
    if found.is_err():
        return found

    record = found.unwrap()
    if record is None:
        return invalid_token("Invalid token", origin="auth.verify_email")
    if record.expires < utcnow():
        return token_expired(origin="auth.verify_email")

    async def consume(s: AsyncSession):
        verified = await users.verify_user_email(s, record.identifier)
        if verified.is_err():
            return verified
        return await tokens.delete_verification_token(s, record.token)

    consumed = await run_in_transaction(session, consume, origin="auth.verify_email")
    if consumed.is_err():
        return consumed

    log.info("email_verified", identifier=record.identifier)
    return Ok("Email verified")
