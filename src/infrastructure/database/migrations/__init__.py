# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Revisions live in ``versions/``. They run through the Alembic CLI
(``alembic upgrade head``) or programmatically at startup via
``runner.run_migrations`` when DB_AUTO_MIGRATE is set.
"""
