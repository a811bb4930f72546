"""Email providers for course invitations.

The SMTP provider is bounded by ``SMTP_TIMEOUT``; a timeout is reported as a
failed send rather than raised.
"""

from __future__ import annotations

import html
import re
from datetime import UTC, datetime
from email.message import EmailMessage
from typing import Any
from uuid import uuid4

import aiosmtplib
from classroom_service_libs.logging_utils import create_service_logger

from services.classroom_service.config import Settings
from services.classroom_service.protocols import EmailProvider, EmailSendResult

logger = create_service_logger("classroom_service.email_provider")


class SMTPEmailProvider(EmailProvider):
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def send_email(
        self,
        to: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
    ) -> EmailSendResult:
        msg = EmailMessage()
        msg["From"] = f"{self.settings.DEFAULT_FROM_NAME} <{self.settings.DEFAULT_FROM_EMAIL}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text_content or html_to_text(html_content), charset="utf-8")
        msg.add_alternative(html_content, subtype="html", charset="utf-8")

        password = self.settings.SMTP_PASSWORD
        try:
            errors, response = await aiosmtplib.send(
                msg,
                hostname=self.settings.SMTP_HOST,
                port=self.settings.SMTP_PORT,
                username=self.settings.SMTP_USERNAME,
                password=password.get_secret_value() if password else None,
                start_tls=self.settings.SMTP_USE_TLS,
                timeout=self.settings.SMTP_TIMEOUT,
            )
        except aiosmtplib.SMTPTimeoutError as e:
            logger.warning(f"SMTP send to {to} timed out: {e}", extra={"to": to})
            return EmailSendResult(success=False, error_message="SMTP timeout")
        except aiosmtplib.SMTPException as e:
            logger.error(f"SMTP send to {to} failed: {e}", exc_info=True, extra={"to": to})
            return EmailSendResult(success=False, error_message=f"SMTP error: {e}")
        except OSError as e:
            logger.error(f"SMTP connection to {self.settings.SMTP_HOST} failed: {e}")
            return EmailSendResult(success=False, error_message=f"SMTP connection failed: {e}")

        if errors:
            details = "; ".join(f"{addr}: {err}" for addr, err in errors.items())
            logger.error(f"SMTP recipient refused for {to}: {details}", extra={"to": to})
            return EmailSendResult(success=False, error_message=f"Recipient refused: {details}")

        logger.info(
            "Email sent via SMTP",
            extra={"to": to, "subject": subject, "smtp_host": self.settings.SMTP_HOST},
        )
        return EmailSendResult(success=True, provider_message_id=f"smtp_{uuid4().hex}")

    def get_provider_name(self) -> str:
        return "smtp"


class MockEmailProvider(EmailProvider):
    """Records emails instead of sending them.

    Addresses listed in ``failing_recipients`` report a delivery failure.
    """

    def __init__(self, failing_recipients: set[str] | None = None) -> None:
        self.failing_recipients = {r.lower() for r in failing_recipients or set()}
        self.sent_emails: list[dict[str, Any]] = []

    async def send_email(
        self,
        to: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
    ) -> EmailSendResult:
        if to.lower() in self.failing_recipients:
            logger.warning(f"Mock email send failed for {to}", extra={"to": to})
            return EmailSendResult(
                success=False, error_message="Mock provider: simulated delivery failure"
            )

        message_id = f"mock_{uuid4().hex}"
        self.sent_emails.append(
            {
                "to": to,
                "subject": subject,
                "html_content": html_content,
                "text_content": text_content,
                "sent_at": datetime.now(UTC),
                "provider_message_id": message_id,
            }
        )
        logger.info(f"Mock email sent to {to}", extra={"to": to, "subject": subject})
        return EmailSendResult(success=True, provider_message_id=message_id)

    def get_provider_name(self) -> str:
        return "mock"


def html_to_text(markup: str) -> str:
    """Plain-text alternative for an HTML body: tags first, then entities, decoded once."""
    text = re.sub(r"<br\s*/?>|</p>|</div>", "\n", markup, flags=re.IGNORECASE)
    text = html.unescape(re.sub(r"<[^>]+>", "", text)).replace("\xa0", " ")
    return re.sub(r"[ \t]+", " ", text).strip()
