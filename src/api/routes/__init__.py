# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API Routes package.

Routes mounted outside the versioned /api/v1 prefix.
"""

from src.api.routes import health

__all__ = ["health"]
