"""Outgoing Mail

Services talk to a ``Mailer``; which backend delivers the message is a
deployment concern. ``LogMailer`` is the development backend and only
writes the kind and recipient to the log. Links carry live tokens and are
never logged.
"""
from typing import Protocol

from core.config import settings
from core.logging import mail_logger

log = mail_logger()


class Mailer(Protocol):
    async def send_verification_email(self, email: str, token: str) -> None: ...

    async def send_reset_password_email(self, email: str, token: str) -> None: ...


def verification_link(token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/verify-email/{token}"


def reset_password_link(token: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}/reset-password/{token}"


class LogMailer:
    """Logs outgoing mail instead of sending it."""

    async def send_verification_email(self, email: str, token: str) -> None:
        log.info("mail_sent", kind="verify_email", to=email)

    async def send_reset_password_email(self, email: str, token: str) -> None:
        log.info("mail_sent", kind="reset_password", to=email)


_default_mailer = LogMailer()


def get_mailer() -> Mailer:
    """FastAPI dependency for the configured mailer."""
    return _default_mailer
