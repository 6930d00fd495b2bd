# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests

Test environment variables are set before any application module is
imported, because settings and the rate limiter are built at import time.
"""

import os

os.environ.update({
    "ENVIRONMENT": "development",
    "DEBUG": "true",
    "LOG_LEVEL": "WARNING",
    "DATABASE_URL": "sqlite+aiosqlite://",
    "JWT_SECRET_KEY": "test-secret-key-for-testing-only",
    "JWT_ALGORITHM": "HS256",
    "ACCESS_TOKEN_EXPIRE_MINUTES": "30",
    "REFRESH_TOKEN_EXPIRE_DAYS": "7",
    "BCRYPT_ROUNDS": "4",
    "RATE_LIMIT_ENABLED": "false",
    "REDIS_ENABLED": "false",
    "STORAGE_BACKEND": "local",
})

from collections.abc import Generator  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from src.core.config import clear_settings_cache  # noqa: E402
from src.infrastructure.events import reset_event_bus  # noqa: E402


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (in-memory database)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Global State
# =============================================================================


@pytest.fixture(autouse=True)
def clean_global_state() -> Generator[None, None, None]:
    """Give every test a fresh settings cache and event bus."""
    clear_settings_cache()
    reset_event_bus()
    yield
    reset_event_bus()
    clear_settings_cache()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create a mock async database session.

    Tests queue query results on ``execute.side_effect``.
    """
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.delete = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.scalar = AsyncMock()
    db.get = AsyncMock()
    return db


@pytest.fixture
def make_result():
    """Factory for mock SQLAlchemy results.

    ``value`` is returned by scalar_one_or_none() and scalar(), ``items``
    by scalars().all() and all().
    """

    def _make(value: Any = None, items: list[Any] | None = None) -> MagicMock:
        result = MagicMock()
        result.scalar_one_or_none.return_value = value
        result.scalar.return_value = value
        result.scalars.return_value.all.return_value = items or []
        result.all.return_value = items or []
        result.rowcount = len(items) if items is not None else 0
        return result

    return _make


@pytest.fixture
def sample_student_id() -> str:
    """Provide a sample student ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def sample_user_data() -> dict[str, Any]:
    """Provide sample registration data for testing."""
    return {
        "name": "Jane Student",
        "email": "jane.student@school.edu",
        "password": "student123456",
        "role": "student",
        "grade_level": "Grade 7",
    }
