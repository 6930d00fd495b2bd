# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the programmatic migration runner.

Runs the revisions against a throwaway SQLite file.
"""

from pathlib import Path

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import create_async_engine

from src.infrastructure.database.migrations.runner import (
    MIGRATIONS,
    get_pending_migrations,
    run_migrations,
)
from src.infrastructure.database.models import Base

pytestmark = pytest.mark.integration


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'migrations.db'}"


async def table_names(db_url: str) -> set[str]:
    engine = create_async_engine(db_url)
    try:
        async with engine.connect() as conn:
            return set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
    finally:
        await engine.dispose()


class TestPendingMigrations:
    """Tests for get_pending_migrations."""

    def test_fresh_database(self) -> None:
        """Test that everything is pending without a version."""
        assert get_pending_migrations(None) == MIGRATIONS

    def test_up_to_date(self) -> None:
        """Test that nothing is pending at the last revision."""
        assert get_pending_migrations(MIGRATIONS[-1]) == []

    def test_unknown_versions(self) -> None:
        """Test that unknown revisions apply nothing."""
        assert get_pending_migrations("999_future") == []
        assert get_pending_migrations(None, target_revision="999_future") == []


class TestRunMigrations:
    """Tests for run_migrations."""

    async def test_creates_every_model_table(self, db_url: str) -> None:
        """Test that the schema matches the ORM models."""
        applied = await run_migrations(db_url)

        assert applied == MIGRATIONS
        tables = await table_names(db_url)
        assert set(Base.metadata.tables) <= tables
        assert "alembic_version" in tables

    async def test_second_run_is_a_no_op(self, db_url: str) -> None:
        """Test that the recorded version prevents reapplying."""
        await run_migrations(db_url)

        assert await run_migrations(db_url) == []

        engine = create_async_engine(db_url)
        try:
            async with engine.connect() as conn:
                version = await conn.scalar(text("SELECT version_num FROM alembic_version"))
        finally:
            await engine.dispose()
        assert version == MIGRATIONS[-1]

    async def test_target_revision_then_upgrade(self, db_url: str) -> None:
        """Test stopping at the first revision and upgrading later."""
        assert await run_migrations(db_url, target_revision="001_initial_schema") == [
            "001_initial_schema"
        ]
        assert "academic_years" not in await table_names(db_url)

        assert await run_migrations(db_url) == ["002_modules_quizzes_academic_years"]

        engine = create_async_engine(db_url)
        try:
            async with engine.connect() as conn:
                columns = await conn.run_sync(
                    lambda sync_conn: {
                        c["name"] for c in inspect(sync_conn).get_columns("task_submissions")
                    }
                )
        finally:
            await engine.dispose()
        assert {"answers", "auto_graded"} <= columns
        assert {"academic_years", "learning_modules", "task_questions"} <= await table_names(db_url)
