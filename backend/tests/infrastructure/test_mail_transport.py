"""SMTP Mail Transport — failure classification without a real server.

Tests cover:
    - Unconfigured transport fails fast with smtp_not_configured
    - Recipient refusal is permanent; other SMTP errors are transient
    - Success when the blocking send completes
"""

import smtplib

from reading_cohorts.core.domain_types import MemberId, Recipient, RenderedMessage
from reading_cohorts.infrastructure.mail_transport import SmtpMailTransport

ANNA = Recipient(member_id=MemberId(1), name="Anna", email="anna@example.com")
MESSAGE = RenderedMessage(subject="Hi", body="Body")


def _transport():
    return SmtpMailTransport(host="smtp.example.com", from_email="bus@example.com")


async def test_unconfigured_transport_fails_fast():
    outcome = await SmtpMailTransport(host=None).send(ANNA, MESSAGE)
    assert outcome.success is False
    assert outcome.reason == "smtp_not_configured"


async def test_recipient_refused_is_permanent(monkeypatch):
    transport = _transport()

    def refuse(recipient, message):
        raise smtplib.SMTPRecipientsRefused({recipient.email: (550, b"no such user")})

    monkeypatch.setattr(transport, "_send_blocking", refuse)
    outcome = await transport.send(ANNA, MESSAGE)
    assert outcome.success is False
    assert outcome.permanent is True


async def test_connection_error_is_transient(monkeypatch):
    transport = _transport()

    def disconnect(recipient, message):
        raise smtplib.SMTPServerDisconnected("gone")

    monkeypatch.setattr(transport, "_send_blocking", disconnect)
    outcome = await transport.send(ANNA, MESSAGE)
    assert outcome.success is False
    assert outcome.permanent is False
    assert outcome.reason == "SMTPServerDisconnected"


async def test_successful_send(monkeypatch):
    transport = _transport()
    sent = []
    monkeypatch.setattr(transport, "_send_blocking", lambda r, m: sent.append(r.email))
    outcome = await transport.send(ANNA, MESSAGE)
    assert outcome.success is True
    assert sent == ["anna@example.com"]


def test_built_message_headers():
    msg = _transport()._build(ANNA, MESSAGE)
    assert msg["To"] == "anna@example.com"
    assert msg["Subject"] == "Hi"
    assert "bus@example.com" in msg["From"]
