# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures for API integration tests.

The application runs against an in-memory SQLite database built from the
ORM metadata. ``get_db`` and ``get_session_factory`` are overridden so that
every request shares that database, and blob storage points at a
temporary directory.
"""

from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from src.api.app import create_app
from src.api.dependencies import get_blob_storage, get_db, get_session_factory
from src.api.v1.chat_socket import reset_chat_manager
from src.core.config import get_settings
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.connection import build_engine, build_sessionmaker
from src.infrastructure.database.models import Base, User
from src.infrastructure.storage import LocalBlobStorage

UserFactory = Callable[..., Awaitable[tuple[User, dict[str, str]]]]


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database shared by all connections of one test."""
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(db_engine)


@pytest.fixture
def storage(tmp_path) -> LocalBlobStorage:
    return LocalBlobStorage(tmp_path / "storage", public_base_url="/api/v1/files")


@pytest.fixture
def app(
    session_maker: async_sessionmaker[AsyncSession],
    storage: LocalBlobStorage,
) -> FastAPI:
    """Application with database and storage dependencies overridden."""

    @asynccontextmanager
    async def session_scope() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_scope() as session:
            yield session

    reset_chat_manager()
    application = create_app()
    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_session_factory] = lambda: session_scope
    application.dependency_overrides[get_blob_storage] = lambda: storage
    yield application
    reset_chat_manager()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client calling the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# =============================================================================
# Users and tokens
# =============================================================================


@pytest.fixture
def make_user(session_maker: async_sessionmaker[AsyncSession]) -> UserFactory:
    """Factory that stores a user and returns it with auth headers."""
    hasher = PasswordHasher(rounds=4)
    counter = {"n": 0}

    async def _make(
        role: str = "student",
        name: str | None = None,
        email: str | None = None,
        password: str = "password123",
        **fields: Any,
    ) -> tuple[User, dict[str, str]]:
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@school.edu",
            password_hash=hasher.hash(password),
            role=role,
            is_active=fields.pop("is_active", True),
            **fields,
        )
        async with session_maker() as session:
            session.add(user)
            await session.commit()

        token = JWTManager(get_settings().jwt).create_access_token(
            user.id, user.role, email=user.email, name=user.name
        )
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest_asyncio.fixture
async def admin(make_user: UserFactory) -> tuple[User, dict[str, str]]:
    return await make_user("admin", name="Site Admin")


@pytest_asyncio.fixture
async def teacher(make_user: UserFactory) -> tuple[User, dict[str, str]]:
    return await make_user("teacher", name="John Teacher")


@pytest_asyncio.fixture
async def student(make_user: UserFactory) -> tuple[User, dict[str, str]]:
    return await make_user("student", name="Jane Student", grade_level="Grade 7")


@pytest_asyncio.fixture
async def parent(make_user: UserFactory) -> tuple[User, dict[str, str]]:
    return await make_user("parent", name="Mary Parent")


@pytest_asyncio.fixture
async def registrar(make_user: UserFactory) -> tuple[User, dict[str, str]]:
    return await make_user("registrar", name="Bob Registrar")


@pytest_asyncio.fixture
async def accounting(make_user: UserFactory) -> tuple[User, dict[str, str]]:
    return await make_user("accounting", name="Alice Accounting")


@pytest_asyncio.fixture
async def guidance(make_user: UserFactory) -> tuple[User, dict[str, str]]:
    return await make_user("guidance", name="Gail Guidance")
