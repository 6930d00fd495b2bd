# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for SchoolPortal.

- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from src.utils.datetime import (
    ensure_utc,
    format_iso,
    month_start,
    next_month_start,
    utc_now,
    utc_today,
    year_start,
)
from src.utils.logging import bind_context, clear_context, get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "utc_today",
    "ensure_utc",
    "month_start",
    "next_month_start",
    "year_start",
    "format_iso",
]
