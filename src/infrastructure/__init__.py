# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer.

This package contains:
- Database connections and models (PostgreSQL)
- Notification dispatch (in-app, email queue)
- Background task processing (Dramatiq, APScheduler)
"""
