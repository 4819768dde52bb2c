from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Index

from core.database import Base, GUID


class User(Base):
    """Storefront customer account."""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=uuid4)
    name = Column(String(255))
    email = Column(String(255), nullable=False, unique=True)
    password = Column(String(255))  # bcrypt hash; null for identity-provider accounts
    phone = Column(String(20))
    role = Column(String(20), nullable=False, default="USER")  # USER / ADMIN
    image = Column(String(500))
    email_verified = Column(DateTime)
    reset_token = Column(String(255), unique=True)
    reset_token_expiry = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_verified(self) -> bool:
        return self.email_verified is not None


class VerificationToken(Base):
    """One-shot email verification token, keyed by the user's email."""
    __tablename__ = "verification_tokens"

    token = Column(String(255), primary_key=True)
    identifier = Column(String(255), nullable=False)  # email address
    expires = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_verification_tokens_identifier", "identifier"),
    )


@dataclass(frozen=True, slots=True)
class CreateUserData:
    """Fields needed to insert a User."""
    name: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class CreateVerificationTokenData:
    """Fields needed to insert a VerificationToken."""
    identifier: str
    token: str
    expires: datetime
