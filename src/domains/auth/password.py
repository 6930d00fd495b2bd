# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Password hashing utilities using bcrypt.

bcrypt only looks at the first 72 bytes of a password. Passwords are
encoded as UTF-8 and cut to that length before hashing and verifying,
so long passphrases behave the same on every bcrypt release.

Example:
    >>> hasher = PasswordHasher(rounds=4)
    >>> hashed = hasher.hash("correct horse")
    >>> hasher.verify("correct horse", hashed)
    True
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def _hash_rounds(password_hash: str) -> int | None:
    """Read the cost factor from a ``$2b$12$...`` hash."""
    parts = password_hash.split("$")
    if len(parts) < 4 or not parts[2].isdigit():
        return None
    return int(parts[2])


class PasswordHasher:
    """bcrypt password hashing.

    Attributes:
        _rounds: bcrypt cost factor for new hashes.
    """

    def __init__(self, rounds: int = 12) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        """Hash a password.

        Raises:
            ValueError: If password is empty.
        """
        if not password:
            raise ValueError("Password cannot be empty")

        hashed = bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=self._rounds))
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash.

        Malformed hashes verify as False.
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.warning("Password verification failed: %s", e)
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        """True when a stored hash uses a lower cost than configured."""
        rounds = _hash_rounds(password_hash)
        return rounds is not None and rounds < self._rounds


_default_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password with the default hasher."""
    return _default_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password with the default hasher."""
    return _default_hasher.verify(password, password_hash)
