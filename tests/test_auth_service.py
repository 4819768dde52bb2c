"""Tests for the authentication service and its repositories."""

from __future__ import annotations

import uuid
from datetime import timedelta

from sqlalchemy import select

from core.errors import ErrorCode, Ok
from core.security import compare_password, utcnow
from models import CreateUserData, User, VerificationToken
from repositories import tokens, users
from services import auth
from services.auth import FORGOT_PASSWORD_MESSAGE


class FailingMailer:
    async def send_verification_email(self, email, token):
        raise ConnectionError("smtp down")

    async def send_reset_password_email(self, email, token):
        raise ConnectionError("smtp down")


async def _token_for(session, email: str) -> VerificationToken:
    result = await session.execute(select(VerificationToken).where(VerificationToken.identifier == email))
    return result.scalar_one()


class TestRepositories:
    async def test_lookup_of_missing_user_is_ok_none(self, session):
        assert await users.get_user_by_email(session, "nobody@example.com") == Ok(None)

    async def test_create_and_fetch_by_id(self, session):
        created = await users.create_user(session, CreateUserData("Ada", "ada@example.com", "hash"))
        await session.commit()
        fetched = await users.get_user_by_id(session, created.unwrap().id)
        assert fetched.unwrap().email == "ada@example.com"

    async def test_duplicate_email_is_already_exists(self, session, make_user):
        await make_user(email="ada@example.com")
        result = await users.create_user(session, CreateUserData("Ada", "ada@example.com", "hash"))
        assert result.error.code is ErrorCode.ALREADY_EXISTS
        await session.rollback()

    async def test_expired_reset_token_does_not_match(self, session, make_user):
        user = await make_user()
        await users.update_user_reset_token(session, user.id, "old", utcnow() - timedelta(minutes=1))
        await session.commit()
        assert await users.get_user_by_reset_token(session, "old") == Ok(None)

    async def test_deleting_a_missing_token_is_ok_none(self, session):
        assert await tokens.delete_verification_token(session, "never-issued") == Ok(None)

    async def test_updating_a_missing_user_is_not_found(self, session):
        result = await users.update_user_password(session, uuid.uuid4(), "hash")
        assert result.error.code is ErrorCode.NOT_FOUND


class TestSignup:
    async def test_creates_unverified_user_and_sends_link(self, session, mailer):
        result = await auth.signup_user(session, mailer, "Ada", "ada@example.com", "correct1horse")

        user = result.unwrap()
        assert user.email == "ada@example.com"
        assert user.email_verified is None
        assert user.password != "correct1horse"
        assert compare_password("correct1horse", user.password)

        token = await _token_for(session, "ada@example.com")
        assert token.expires > utcnow()
        assert mailer.outbox == [
            ("verify_email", "ada@example.com", f"http://shop.test/verify-email/{token.token}")
        ]

    async def test_existing_email_is_rejected(self, session, mailer, make_user):
        await make_user(email="ada@example.com")
        result = await auth.signup_user(session, mailer, "Ada", "ada@example.com", "correct1horse")
        assert result.error.code is ErrorCode.ALREADY_EXISTS
        assert mailer.outbox == []

    async def test_mail_failure_does_not_fail_signup(self, session):
        result = await auth.signup_user(session, FailingMailer(), "Ada", "ada@example.com", "correct1horse")
        assert result.is_ok()


class TestSignin:
    async def test_valid_credentials(self, session, make_user):
        await make_user(email="ada@example.com", password="correct1horse")
        result = await auth.signin_user(session, "ada@example.com", "correct1horse")
        assert result.unwrap().email == "ada@example.com"

    async def test_unknown_email_and_wrong_password_look_the_same(self, session, make_user):
        await make_user(email="ada@example.com", password="correct1horse")
        unknown = await auth.signin_user(session, "bob@example.com", "correct1horse")
        wrong = await auth.signin_user(session, "ada@example.com", "wrong1horse")
        assert unknown.error.code is wrong.error.code is ErrorCode.INVALID_CREDENTIALS
        assert unknown.error.message == wrong.error.message

    async def test_unverified_user(self, session, make_user):
        await make_user(email="ada@example.com", password="correct1horse", verified=False)
        result = await auth.signin_user(session, "ada@example.com", "correct1horse")
        assert result.error.code is ErrorCode.EMAIL_NOT_VERIFIED

    async def test_account_without_password(self, session):
        session.add(User(name="OAuth", email="oauth@example.com", password=None, email_verified=utcnow()))
        await session.commit()
        result = await auth.signin_user(session, "oauth@example.com", "anything1")
        assert result.error.code is ErrorCode.INVALID_CREDENTIALS


class TestPasswordReset:
    async def test_unknown_email_gets_the_generic_message(self, session, mailer):
        result = await auth.forgot_password(session, mailer, "nobody@example.com")
        assert result == Ok(FORGOT_PASSWORD_MESSAGE)
        assert mailer.outbox == []

    async def test_full_reset_flow(self, session, mailer, make_user):
        user = await make_user(email="ada@example.com", password="correct1horse")

        result = await auth.forgot_password(session, mailer, "ada@example.com")
        assert result == Ok(FORGOT_PASSWORD_MESSAGE)
        kind, to, link = mailer.outbox[0]
        assert (kind, to) == ("reset_password", "ada@example.com")
        token = link.rsplit("/", 1)[1]

        reset = await auth.reset_password(session, token, "new1password")
        assert reset == Ok("Password reset successful")

        await session.refresh(user)
        assert user.reset_token is None
        assert user.reset_token_expiry is None
        assert compare_password("new1password", user.password)

        # token is single-use
        again = await auth.reset_password(session, token, "other1password")
        assert again.error.code is ErrorCode.INVALID_TOKEN

    async def test_unknown_reset_token(self, session):
        result = await auth.reset_password(session, "bogus", "new1password")
        assert result.error.code is ErrorCode.INVALID_TOKEN


class TestVerifyEmail:
    async def test_valid_token_verifies_and_is_consumed(self, session, make_user, make_token):
        user = await make_user(email="ada@example.com", verified=False)
        await make_token("ada@example.com", token="tok-valid")

        assert await auth.verify_email(session, "tok-valid") == Ok("Email verified")

        await session.refresh(user)
        assert user.email_verified is not None
        assert await tokens.get_verification_token(session, "tok-valid") == Ok(None)

    async def test_unknown_token(self, session):
        result = await auth.verify_email(session, "missing")
        assert result.error.code is ErrorCode.INVALID_TOKEN

    async def test_expired_token(self, session, make_user, make_token):
        await make_user(email="ada@example.com", verified=False)
        await make_token("ada@example.com", token="tok-old", expires_in=timedelta(minutes=-5))
        result = await auth.verify_email(session, "tok-old")
        assert result.error.code is ErrorCode.TOKEN_EXPIRED
