# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database seed package.

- Admin seed: initial administrator from bootstrap settings
"""

from src.infrastructure.database.seeds.admin import seed_initial_admin

__all__ = ["seed_initial_admin"]
