# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""UTC date helpers.

Trigger windows, cooldowns and expiry dates are all computed in UTC.
SQLite drops tzinfo on read, so values coming back from the database go
through ensure_utc() before they are compared.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Make a datetime aware UTC.

    Naive values are taken to be UTC already; aware values are converted.
    None passes through.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def days_before(reference: datetime, days: int) -> datetime:
    """The instant ``days`` whole days before ``reference``."""
    return ensure_utc(reference) - timedelta(days=days)


def days_after(reference: datetime, days: int) -> datetime:
    """The instant ``days`` whole days after ``reference``."""
    return ensure_utc(reference) + timedelta(days=days)


def format_date(dt: datetime) -> str:
    """Render the UTC calendar date shown in notification messages.

    Example:
        >>> format_date(datetime(2025, 3, 9, 22, 0, tzinfo=timezone.utc))
        '2025-03-09'
    """
    return ensure_utc(dt).date().isoformat()
