# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial administrator seed.

Staff accounts cannot self-register, so the first admin is created at
startup from ``BOOTSTRAP_ADMIN_EMAIL`` and ``BOOTSTRAP_ADMIN_PASSWORD``.
Nothing happens once any admin exists.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import BootstrapSettings
from src.core.roles import Role
from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.models import User

logger = logging.getLogger(__name__)


async def seed_initial_admin(
    session: AsyncSession,
    settings: BootstrapSettings,
    hasher: PasswordHasher,
) -> User | None:
    """Create the initial admin if configured and no admin exists.

    Args:
        session: Database session.
        settings: Bootstrap credentials.
        hasher: Password hasher for the stored hash.

    Returns:
        The created admin, or None when nothing was seeded.
    """
    if not settings.enabled:
        return None

    existing = await session.scalar(
        select(User.id).where(User.role == Role.ADMIN.value).limit(1)
    )
    if existing is not None:
        logger.info("Admin already exists, skipping seed")
        return None

    email = settings.email.strip().lower()
    taken = await session.scalar(select(User.id).where(User.email == email))
    if taken is not None:
        logger.warning("Cannot seed admin: email %s belongs to another account", email)
        return None

    admin = User(
        name=settings.name,
        email=email,
        password_hash=hasher.hash(settings.password.get_secret_value()),
        role=Role.ADMIN.value,
        is_active=True,
    )
    session.add(admin)
    await session.commit()
    logger.info("Seeded initial admin %s", email)
    return admin
