# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for SchoolPortal.

- config: Application configuration and settings
- roles: Role vocabulary shared by the API and services
"""
