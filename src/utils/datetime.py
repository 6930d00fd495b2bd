# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for SchoolPortal.

All timestamps are stored and compared as timezone-aware UTC values.
SQLite hands back naive datetimes, so values read from the database pass
through ``ensure_utc`` before they are compared or serialized.

Usage:
    from src.utils.datetime import utc_now

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import date, datetime, time, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Naive values are assumed to already be UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_today() -> date:
    """Get today's date in UTC."""
    return utc_now().date()


def month_start(reference: datetime | None = None) -> datetime:
    """Get midnight UTC of the first day of the month containing ``reference``."""
    ref = ensure_utc(reference) or utc_now()
    return ref.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def year_start(reference: datetime | None = None) -> datetime:
    """Get midnight UTC of January 1st of the year containing ``reference``."""
    ref = ensure_utc(reference) or utc_now()
    return ref.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)


def next_month_start(reference: datetime | None = None) -> datetime:
    """Get midnight UTC of the first day of the following month."""
    start = month_start(reference)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def day_start(day: date) -> datetime:
    """Get midnight UTC at the start of ``day``."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def day_end(day: date) -> datetime:
    """Get midnight UTC at the start of the day after ``day``."""
    return day_start(day + timedelta(days=1))


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as an ISO 8601 string in UTC."""
    if dt is None:
        return None
    aware = ensure_utc(dt)
    return aware.isoformat() if aware else None
