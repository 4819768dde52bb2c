"""Shared test fixtures for the storefront backend.

Settings are read once at import time, so the environment is pointed at a
throwaway SQLite file before any application module is imported.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from datetime import timedelta
from typing import Generator

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
DB_PATH = os.path.join(_TMP_DIR, "test.db")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_PATH}"
os.environ["BCRYPT_ROUNDS"] = "4"  # bcrypt's minimum; keeps hashing fast
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["APP_URL"] = "http://shop.test"

import httpx  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402

from core.database import AsyncSessionLocal, Base  # noqa: E402
from core.security import hash_password, utcnow  # noqa: E402
from main import app  # noqa: E402
from models import Category, Product, User, VerificationToken  # noqa: E402
from services.mail import get_mailer, reset_password_link, verification_link  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_TMP_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def database() -> Generator[None, None, None]:
    """Fresh schema for every test."""
    engine = create_engine(f"sqlite:///{DB_PATH}")
    Base.metadata.create_all(engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
async def session():
    async with AsyncSessionLocal() as s:
        yield s


class RecordingMailer:
    """Keeps every message as (kind, email, link) for assertions."""

    def __init__(self):
        self.outbox: list[tuple[str, str, str]] = []

    async def send_verification_email(self, email: str, token: str) -> None:
        self.outbox.append(("verify_email", email, verification_link(token)))

    async def send_reset_password_email(self, email: str, token: str) -> None:
        self.outbox.append(("reset_password", email, reset_password_link(token)))


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
async def client(mailer):
    app.dependency_overrides[get_mailer] = lambda: mailer
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    """Insert a user directly, bypassing the service layer."""

    async def _make(
        email: str = "ada@example.com",
        password: str = "correct1horse",
        verified: bool = True,
        name: str = "Ada",
    ) -> User:
        user = User(
            name=name,
            email=email,
            password=hash_password(password),
            email_verified=utcnow() if verified else None,
        )
        session.add(user)
        await session.commit()
        return user

    return _make


@pytest.fixture
def make_token(session):
    async def _make(identifier: str, token: str = "tok123", expires_in: timedelta = timedelta(hours=1)):
        row = VerificationToken(identifier=identifier, token=token, expires=utcnow() + expires_in)
        session.add(row)
        await session.commit()
        return row

    return _make


@pytest.fixture
async def catalog(session) -> dict[str, Category]:
    """Two categories and four products, one of them inactive."""
    dresses = Category(name="Dresses", slug="dresses", is_featured=True)
    shoes = Category(name="Shoes", slug="shoes")
    session.add_all([dresses, shoes])
    await session.flush()

    now = utcnow()
    session.add_all([
        Product(name="Floral Midi Dress", slug="floral-midi-dress", price=79, rating=4.6,
                is_best_seller=True, category=dresses, created_at=now - timedelta(days=3)),
        Product(name="Silk Slip Dress", slug="silk-slip-dress", price=119, rating=4.2,
                description="Bias-cut silk", category=dresses, created_at=now - timedelta(days=1)),
        Product(name="Leather Ankle Boots", slug="leather-ankle-boots", price=129, rating=4.8,
                is_best_seller=True, category=shoes, created_at=now - timedelta(days=2)),
        Product(name="Retired Sandal", slug="retired-sandal", price=19, category=shoes,
                is_active=False, created_at=now),
    ])
    await session.commit()
    return {"dresses": dresses, "shoes": shoes}
