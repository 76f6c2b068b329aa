# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared helpers: UTC date arithmetic and logging setup."""

from src.utils.datetime import days_after, days_before, ensure_utc, format_date, utc_now
from src.utils.logging import bind_context, clear_context, setup_logging

__all__ = [
    "utc_now",
    "ensure_utc",
    "days_before",
    "days_after",
    "format_date",
    "setup_logging",
    "bind_context",
    "clear_context",
]
