# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for password hashing utilities.

Tests the PasswordHasher class and convenience functions.
"""

import pytest

from src.domains.auth.password import (
    BCRYPT_MAX_BYTES,
    PasswordHasher,
    hash_password,
    verify_password,
)


@pytest.fixture
def hasher() -> PasswordHasher:
    """Low-cost hasher so the suite stays fast."""
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for PasswordHasher class."""

    def test_hash_password_returns_bcrypt_hash(self, hasher: PasswordHasher) -> None:
        """Test that hashing returns a bcrypt hash string."""
        hashed = hasher.hash("student123456")

        assert hashed.startswith("$2b$04$")
        assert len(hashed) == 60

    def test_hash_is_salted(self, hasher: PasswordHasher) -> None:
        """Test that the same password hashes differently each time."""
        assert hasher.hash("student123456") != hasher.hash("student123456")

    def test_verify_correct_and_incorrect_password(self, hasher: PasswordHasher) -> None:
        """Test verification against a stored hash."""
        hashed = hasher.hash("correct_password")

        assert hasher.verify("correct_password", hashed) is True
        assert hasher.verify("wrong_password", hashed) is False

    @pytest.mark.parametrize(
        "password,password_hash",
        [
            ("", "$2b$04$abcdefghijklmnopqrstuu"),
            ("password", ""),
            ("password", "not_a_valid_bcrypt_hash"),
        ],
    )
    def test_verify_rejects_bad_input(
        self, hasher: PasswordHasher, password: str, password_hash: str
    ) -> None:
        """Test that empty values and malformed hashes verify as False."""
        assert hasher.verify(password, password_hash) is False

    def test_hash_empty_password_raises_error(self, hasher: PasswordHasher) -> None:
        """Test that hashing empty password raises ValueError."""
        with pytest.raises(ValueError, match="Password cannot be empty"):
            hasher.hash("")

    @pytest.mark.parametrize("rounds", [3, 32])
    def test_rounds_out_of_range(self, rounds: int) -> None:
        """Test that the cost factor is bounded."""
        with pytest.raises(ValueError, match="between 4 and 31"):
            PasswordHasher(rounds=rounds)

    def test_needs_rehash(self, hasher: PasswordHasher) -> None:
        """Test rehash detection when the configured cost grows."""
        old_hash = hasher.hash("password")

        assert hasher.needs_rehash(old_hash) is False
        assert PasswordHasher(rounds=5).needs_rehash(old_hash) is True
        assert hasher.needs_rehash("") is False

    def test_unicode_password(self, hasher: PasswordHasher) -> None:
        """Test that unicode passwords work correctly."""
        password = "mahal_kita_密码"

        assert hasher.verify(password, hasher.hash(password)) is True

    def test_long_password_is_truncated(self, hasher: PasswordHasher) -> None:
        """Test that only the first 72 bytes take part in the hash."""
        prefix = "a" * BCRYPT_MAX_BYTES
        hashed = hasher.hash(prefix + "tail one")

        assert hasher.verify(prefix + "another tail", hashed) is True
        assert hasher.verify("a" * (BCRYPT_MAX_BYTES - 1), hashed) is False


class TestConvenienceFunctions:
    """Tests for module-level convenience functions."""

    def test_hash_and_verify(self) -> None:
        """Test the default hasher helpers."""
        hashed = hash_password("test_password")

        assert hashed.startswith("$2b$")
        assert verify_password("test_password", hashed) is True
        assert verify_password("wrong_password", hashed) is False
