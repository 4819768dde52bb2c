"""Verification Token Repository"""
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import with_repository
from models.user import VerificationToken, CreateVerificationTokenData


@with_repository("tokens.create")
async def create_verification_token(
    session: AsyncSession, data: CreateVerificationTokenData
) -> VerificationToken:
    token = VerificationToken(
        identifier=data.identifier,
        token=data.token,
        expires=data.expires,
    )
    session.add(token)
    await session.flush()
    return token


@with_repository("tokens.get")
async def get_verification_token(session: AsyncSession, token: str) -> VerificationToken | None:
    return await session.get(VerificationToken, token)


@with_repository("tokens.delete")
async def delete_verification_token(session: AsyncSession, token: str) -> VerificationToken | None:
    """Delete a token. A token that is already gone yields ``Ok(None)``."""
    row = await session.get(VerificationToken, token)
    if row is None:
        return None
    await session.delete(row)
    await session.flush()
    return row
