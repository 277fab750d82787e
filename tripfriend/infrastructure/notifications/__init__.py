# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Outgoing notifications.

Only plain-text mail is supported; it carries email verification codes.

Usage:
    from tripfriend.infrastructure.notifications import SmtpMailSender

    sender = SmtpMailSender(settings.mail)
    await sender.send(to="traveler@example.com", subject="...", body="...")
"""

from tripfriend.infrastructure.notifications.mail import (
    MailDeliveryError,
    MailSender,
    SmtpMailSender,
)

__all__ = [
    "MailDeliveryError",
    "MailSender",
    "SmtpMailSender",
]
