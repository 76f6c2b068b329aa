"""Notification dispatch service for the accreditation platform.

Routes platform events to users through in-app and email channels,
honouring per-category preferences and role safety rules, and runs the
scheduled compliance, inactivity and profile triggers.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
