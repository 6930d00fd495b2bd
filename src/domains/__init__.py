# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for SchoolPortal.

This package contains domain services that encapsulate business logic.
Each domain module provides a service working on an async session.

Domains:
    auth: Registration, login, tokens and password hashing.
    user: User administration and parent-student links.
    school: Sections, subjects, teacher assignments, org chart, settings.
    academic: Grades, academic records, transcripts, graduation.
    enrollment: Enrollment records and the application workflow.
    classroom: Tasks, submissions and meetings.
    guidance: Behavior records, counseling and wellness programs.
    accounting: Fees, invoices, payments, scholarships and expenses.
    content: Announcements, news and events.
    notification: In-app notifications.
    document: Student documents and generic uploads.
    dashboard: Role dashboards and statistics.
    chat: Conversations, messages and presence.
"""
