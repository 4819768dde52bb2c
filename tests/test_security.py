"""Tests for token generation and password hashing."""

from __future__ import annotations

from datetime import timedelta

import pytest

from core.config import settings
from core.security import (
    compare_password,
    generate_auth_token,
    generate_secure_token,
    get_auth_token_expiration,
    hash_password,
    utcnow,
)


@pytest.mark.parametrize("n", [0, 1, 16, 32, 64])
def test_token_length_is_twice_the_byte_count(n):
    token = generate_secure_token(n)
    assert len(token) == 2 * n
    assert all(c in "0123456789abcdef" for c in token)


def test_tokens_do_not_collide():
    tokens = {generate_secure_token(32) for _ in range(1000)}
    assert len(tokens) == 1000


def test_negative_length_is_rejected():
    with pytest.raises(ValueError):
        generate_secure_token(-1)


def test_auth_token_uses_configured_size():
    assert len(generate_auth_token()) == 2 * settings.TOKEN_BYTES


def test_auth_token_expiration_is_in_the_future():
    expires = get_auth_token_expiration()
    delta = expires - utcnow()
    assert timedelta(minutes=settings.TOKEN_EXPIRATION_MINUTES - 1) < delta
    assert delta <= timedelta(minutes=settings.TOKEN_EXPIRATION_MINUTES)


def test_hash_then_compare():
    hashed = hash_password("secret")
    assert hashed != "secret"
    assert compare_password("secret", hashed) is True
    assert compare_password("wrong", hashed) is False


def test_hashes_are_salted():
    assert hash_password("secret") != hash_password("secret")


def test_hash_uses_configured_work_factor():
    assert hash_password("secret").startswith(f"$2b${settings.BCRYPT_ROUNDS:02d}$")


def test_malformed_hash_compares_false():
    assert compare_password("secret", "not-a-bcrypt-hash") is False
