# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Outgoing mail over async SMTP.

Mail is sent as plain text through aiosmtplib. Delivery failures are
raised as MailDeliveryError so the API can report the mail service as
unavailable instead of a bad request.
"""

import logging
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Protocol

import aiosmtplib

from tripfriend.core.config.settings import MailSettings

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    """Raised when the SMTP server rejects or cannot receive a message.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SMTP error.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class MailSender(Protocol):
    """Anything that can deliver a plain-text mail."""

    async def send(self, to: str, subject: str, body: str) -> None: ...


class SmtpMailSender:
    """Mail sender backed by an SMTP server.

    Attributes:
        _settings: SMTP configuration.
    """

    def __init__(self, settings: MailSettings) -> None:
        """Initialize the mail sender.

        Args:
            settings: SMTP configuration.
        """
        self._settings = settings

    async def send(self, to: str, subject: str, body: str) -> None:
        """Send a plain-text mail.

        Args:
            to: Recipient address.
            subject: Subject line.
            body: Plain-text body.

        Raises:
            MailDeliveryError: If the SMTP exchange fails.
        """
        message = MIMEText(body, "plain", "utf-8")
        message["Subject"] = subject
        message["From"] = self._settings.from_email
        message["To"] = to
        message["Message-ID"] = make_msgid(domain=self._settings.from_email.split("@")[-1])

        password = self._settings.password.get_secret_value() if self._settings.password else None

        try:
            await aiosmtplib.send(
                message,
                hostname=self._settings.host,
                port=self._settings.port,
                username=self._settings.username,
                password=password,
                start_tls=self._settings.use_tls,
            )
        except aiosmtplib.SMTPException as e:
            logger.error("Failed to send mail to %s: %s", to, str(e))
            raise MailDeliveryError(f"Failed to send mail to {to}", e) from e

        logger.info("Mail sent to %s: %s", to, subject)
