"""SchoolPortal Backend.

School enrollment and management service with role-based dashboards,
document storage and realtime chat.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
