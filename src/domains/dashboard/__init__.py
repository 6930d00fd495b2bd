# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role dashboard aggregates."""

from src.domains.dashboard.service import DashboardService

__all__ = ["DashboardService"]
