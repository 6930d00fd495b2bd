# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Filename helpers for stored blobs."""

import re
import secrets
import time
from pathlib import PurePosixPath

_UNSAFE = re.compile(r"[^A-Za-z0-9]")


def split_filename(filename: str) -> tuple[str, str]:
    """Split a client filename into a sanitized base and a lowercase extension."""
    name = PurePosixPath(filename.replace("\\", "/")).name
    suffix = PurePosixPath(name).suffix
    if re.fullmatch(r"\.[A-Za-z0-9]{1,10}", suffix):
        base, ext = name[: -len(suffix)], suffix.lower()
    else:
        base, ext = name, ""
    return _UNSAFE.sub("_", base) or "file", ext


def safe_filename(filename: str) -> str:
    """``My Report (v2).PDF`` becomes ``My_Report__v2_.pdf``."""
    base, ext = split_filename(filename)
    return f"{base}{ext}"


def unique_filename(filename: str) -> str:
    """Sanitized name with a millisecond timestamp and random suffix."""
    base, ext = split_filename(filename)
    return f"{base}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"
