"""Password hashing and token generation.

Hashing is delegated to bcrypt and randomness to the ``secrets`` CSPRNG.
Nothing here compares secrets itself: ``compare_password`` hands the whole
comparison to ``bcrypt.checkpw``, which is constant-time.
"""
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt

from core.config import settings


def generate_secure_token(byte_length: int = 32) -> str:
    """Hex token of ``2 * byte_length`` characters."""
    if byte_length < 0:
        raise ValueError("byte_length must be non-negative")
    return secrets.token_hex(byte_length)


def hash_password(plaintext: str) -> str:
    """Salted bcrypt hash using the configured work factor."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")


def compare_password(plaintext: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash (e.g. OAuth-only account with no password)
        return False


def generate_auth_token() -> str:
    """Token for email verification and password reset links."""
    return generate_secure_token(settings.TOKEN_BYTES)


def get_auth_token_expiration() -> datetime:
    return utcnow() + timedelta(minutes=settings.TOKEN_EXPIRATION_MINUTES)


def utcnow() -> datetime:
    """Naive UTC now, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
