"""SMTP Mail Transport — MailTransport protocol over smtplib.

Invariants:
    - send() never raises for delivery problems; it returns a SendOutcome
    - Recipient refusals (SMTPRecipientsRefused) are permanent; everything else is transient
    - The blocking smtplib call runs in a worker thread so batches can overlap

Design Decisions:
    - One SMTP connection per message: batches are small and rate-limited upstream
    - Unconfigured transport logs and fails fast instead of attempting a connection
"""

import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from email.utils import formatdate

from reading_cohorts.core.domain_types import Recipient, RenderedMessage, SendOutcome

logger = logging.getLogger(__name__)


class SmtpMailTransport:
    """STARTTLS SMTP delivery for plain-text notification emails."""

    def __init__(
        self,
        host: str | None,
        port: int = 587,
        user: str | None = None,
        password: str | None = None,
        from_email: str | None = None,
        from_name: str = "The Bible Bus",
        timeout_seconds: int = 15,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email or user
        self.from_name = from_name
        self.timeout_seconds = timeout_seconds
        self.enabled = bool(self.host and self.from_email)
        if not self.enabled:
            logger.warning("SMTP not configured. Set SMTP_HOST and SMTP_FROM_EMAIL.")

    @classmethod
    def from_settings(cls, settings) -> "SmtpMailTransport":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            from_email=settings.smtp_from_email,
            from_name=settings.smtp_from_name,
            timeout_seconds=settings.smtp_timeout_seconds,
        )

    async def send(self, recipient: Recipient, message: RenderedMessage) -> SendOutcome:
        if not self.enabled:
            return SendOutcome(success=False, reason="smtp_not_configured")
        try:
            await asyncio.to_thread(self._send_blocking, recipient, message)
        except smtplib.SMTPRecipientsRefused as e:
            logger.warning(
                f"Recipient refused: {e.recipients}", extra={"recipient": recipient.email},
            )
            return SendOutcome(success=False, reason="recipient_refused", permanent=True)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(
                f"SMTP send failed: {e}", extra={"recipient": recipient.email},
            )
            return SendOutcome(success=False, reason=type(e).__name__)
        return SendOutcome(success=True)

    def _build(self, recipient: Recipient, message: RenderedMessage) -> MIMEText:
        msg = MIMEText(message.body, "plain", "utf-8")
        msg["Subject"] = message.subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = recipient.email
        msg["Date"] = formatdate(localtime=False)
        return msg

    def _send_blocking(self, recipient: Recipient, message: RenderedMessage) -> None:
        msg = self._build(recipient, message)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as server:
            server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)
        logger.info("Email sent", extra={"recipient": recipient.email})
