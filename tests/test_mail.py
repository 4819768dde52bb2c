"""Tests for the development mail backend."""

from __future__ import annotations

import pytest

from services import mail


class _Log:
    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def info(self, event, **kw):
        self.events.append((event, kw))


@pytest.fixture
def mail_log(monkeypatch) -> _Log:
    recorder = _Log()
    monkeypatch.setattr(mail, "log", recorder)
    return recorder


async def test_log_mailer_never_logs_the_token(mail_log):
    mailer = mail.get_mailer()
    await mailer.send_verification_email("ada@example.com", "secret-verify-token")
    await mailer.send_reset_password_email("ada@example.com", "secret-reset-token")

    assert [kw["kind"] for _, kw in mail_log.events] == ["verify_email", "reset_password"]
    for event, kw in mail_log.events:
        assert event == "mail_sent"
        assert kw["to"] == "ada@example.com"
        assert not any("secret-" in str(v) for v in kw.values())


async def test_log_mailer_keeps_no_state(mail_log):
    mailer = mail.get_mailer()
    for i in range(50):
        await mailer.send_verification_email(f"user{i}@example.com", f"tok{i}")
    assert vars(mailer) == {}
    assert len(mail_log.events) == 50


def test_links_point_at_the_app():
    assert mail.verification_link("abc") == "http://shop.test/verify-email/abc"
    assert mail.reset_password_link("abc") == "http://shop.test/reset-password/abc"
