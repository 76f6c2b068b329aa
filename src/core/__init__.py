# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package.

- config: Application configuration and settings
- triggers: Scheduled notification scans with cooldowns
"""
