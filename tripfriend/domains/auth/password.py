# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Member password hashing with bcrypt.

bcrypt reads at most 72 bytes of input and current releases refuse
anything longer, so member passwords are capped at MAX_PASSWORD_BYTES
of UTF-8. Sign-up validates the same limit before a hash is attempted.

Members created through a social login never choose a password; they
get the hash of a random secret so password login can never match.

Example:
    >>> hasher = PasswordHasher(rounds=4)
    >>> stored = hasher.hash("secret123")
    >>> hasher.verify("secret123", stored)
    True
"""

import logging
import secrets

import bcrypt

logger = logging.getLogger(__name__)

MAX_PASSWORD_BYTES = 72


def password_byte_length(password: str) -> int:
    """Length of a password as bcrypt sees it."""
    return len(password.encode("utf-8"))


class PasswordHasher:
    """Hashes and checks member passwords.

    Attributes:
        _rounds: bcrypt cost factor.
    """

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a member password.

        Args:
            password: Plain text password.

        Returns:
            bcrypt hash with the salt embedded.

        Raises:
            ValueError: If the password is empty or longer than
                MAX_PASSWORD_BYTES once encoded.
        """
        encoded = password.encode("utf-8")
        if not encoded:
            raise ValueError("Password cannot be empty")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("ascii")

    def hash_random(self) -> str:
        """Hash a random secret for an account without a password."""
        return self.hash(secrets.token_urlsafe(32))

    def verify(self, password: str, password_hash: str | None) -> bool:
        """Check a login attempt against the stored hash.

        Empty or over-long candidates and stored values that are not
        bcrypt hashes never match.
        """
        encoded = password.encode("utf-8")
        if not encoded or len(encoded) > MAX_PASSWORD_BYTES or not password_hash:
            return False

        try:
            return bcrypt.checkpw(encoded, password_hash.encode("ascii"))
        except ValueError:
            logger.warning("Stored password value is not a bcrypt hash")
            return False
