"""
Email delivery of finished summaries.

The rest of the system only needs ``send_email(recipients, subject, body)``
returning a message id; ``SmtpEmailSender`` is the stock implementation.
"""

from __future__ import annotations

import logging
import os
import re
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any, Callable, List, Optional, Protocol, Sequence

from ..core.exceptions import DeliveryError, InvalidArgumentError

logger = logging.getLogger(__name__)

MAX_RECIPIENTS = 10
DEFAULT_SUBJECT = "Meeting Summary"
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EmailSender(Protocol):
    def send_email(self, recipients: Sequence[str], subject: str, body: str) -> str:
        ...


def validate_recipients(recipients: Sequence[str]) -> List[str]:
    """Normalize recipient addresses and check count and shape."""
    if not recipients:
        raise InvalidArgumentError("At least one recipient email is required")

    cleaned = [address.strip() for address in recipients]
    invalid = [address for address in cleaned if not EMAIL_PATTERN.match(address)]
    if invalid:
        raise InvalidArgumentError(f"Invalid email addresses: {', '.join(invalid)}")
    if len(cleaned) > MAX_RECIPIENTS:
        raise InvalidArgumentError(f"Maximum {MAX_RECIPIENTS} recipients allowed")
    return cleaned


class SmtpEmailSender:
    """Sends plain-text mail through an SMTP relay."""

    def __init__(
        self,
        host: str,
        sender: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        smtp_factory: Callable[..., Any] = smtplib.SMTP,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.smtp_factory = smtp_factory

    def build_message(self, recipients: Sequence[str], subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject or DEFAULT_SUBJECT
        message["Message-ID"] = make_msgid(domain=self.sender.rpartition("@")[2] or None)
        message.set_content(body)
        return message

    def send_email(self, recipients: Sequence[str], subject: str, body: str) -> str:
        """
        Send ``body`` to every recipient.

        Returns:
            The Message-ID header of the sent mail

        Raises:
            InvalidArgumentError: For missing body or bad recipients
            DeliveryError: If the relay rejects the login or the message
        """
        recipients = validate_recipients(recipients)
        if not body or not body.strip():
            raise InvalidArgumentError("Summary content is required")

        message = self.build_message(recipients, subject, body)
        try:
            with self.smtp_factory(self.host, self.port) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except smtplib.SMTPAuthenticationError as e:
            raise DeliveryError("Email authentication failed") from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Sending email through %s failed: %s", self.host, e)
            raise DeliveryError(f"Failed to send email: {e}") from e

        logger.info("Sent summary to %d recipient(s)", len(recipients))
        return message["Message-ID"]


def build_email_sender(email_config: Any) -> SmtpEmailSender:
    """Create an SMTP sender from the email config section."""
    if not email_config.smtp_host or not email_config.sender:
        raise InvalidArgumentError("Email service is not configured")
    return SmtpEmailSender(
        host=email_config.smtp_host,
        sender=email_config.sender,
        port=email_config.smtp_port,
        username=email_config.username,
        password=os.getenv("SUMMARY_DESK_SMTP_PASSWORD"),
        use_tls=email_config.use_tls,
    )
