# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Email verification codes.

A six-digit code is stored under ``email_auth:{email}`` with a short TTL
and mailed to the address. Confirming the code consumes it.
"""

import logging
import secrets

from tripfriend.domains.auth.credential_store import KeyValueBackend
from tripfriend.domains.member.service import MemberServiceError
from tripfriend.infrastructure.notifications.mail import MailSender

logger = logging.getLogger(__name__)

EMAIL_AUTH_PREFIX = "email_auth:"


class InvalidVerificationCodeError(MemberServiceError):
    """Raised when a verification code is wrong, used or expired."""

    code = "400-2"
    default_message = "Invalid or expired verification code"


class EmailVerificationService:
    """Issues and checks email verification codes.

    Attributes:
        _backend: Key-value backend holding pending codes.
        _mail_sender: Mail sender.
        _code_ttl_seconds: Lifetime of a code.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        mail_sender: MailSender,
        code_ttl_seconds: int = 300,
    ) -> None:
        self._backend = backend
        self._mail_sender = mail_sender
        self._code_ttl_seconds = code_ttl_seconds

    async def send_code(self, email: str) -> None:
        """Generate a code, store it and mail it to the address.

        A new code replaces any pending one for the same address.

        Args:
            email: Address to verify.

        Raises:
            MailDeliveryError: If the mail cannot be sent.
        """
        code = f"{secrets.randbelow(1_000_000):06d}"
        await self._backend.set(
            self._key(email),
            code,
            expire_seconds=self._code_ttl_seconds,
        )

        minutes = max(self._code_ttl_seconds // 60, 1)
        await self._mail_sender.send(
            to=email,
            subject="[TripFriend] Email verification code",
            body=f"Your verification code is {code}. It expires in {minutes} minutes.",
        )

        logger.info("Verification code sent to %s", email)

    async def verify_code(self, email: str, code: str) -> None:
        """Check and consume a verification code.

        Args:
            email: Address being verified.
            code: Code the member entered.

        Raises:
            InvalidVerificationCodeError: If the code does not match or
                has expired.
        """
        stored = await self._backend.get(self._key(email))
        if stored is None or not secrets.compare_digest(
            stored.encode("utf-8"), code.encode("utf-8")
        ):
            logger.warning("Verification code rejected for %s", email)
            raise InvalidVerificationCodeError()

        await self._backend.delete(self._key(email))

    @staticmethod
    def _key(email: str) -> str:
        return EMAIL_AUTH_PREFIX + email.lower()
