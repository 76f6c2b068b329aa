# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduled notification triggers.

Each trigger selects candidates, skips those inside its cooldown window
and dispatches the rest through NotificationService.

Key Components:
- TriggerEngine: runs triggers and reports {processed, sent}
- ComplianceExpiryTrigger: compliance records nearing expiry
- InactivityTrigger: long-idle users
- ProfileCompletenessTrigger: onboarded users with incomplete profiles
- CooldownPolicy: named lookback window and match key per trigger

Configuration (environment variables, TRIGGER_ prefix):
- TRIGGER_COMPLIANCE_EXPIRY_WINDOW_DAYS / TRIGGER_COMPLIANCE_COOLDOWN_DAYS
- TRIGGER_INACTIVITY_THRESHOLD_DAYS / TRIGGER_INACTIVITY_COOLDOWN_DAYS
- TRIGGER_INACTIVITY_BATCH_SIZE
- TRIGGER_PROFILE_COMPLETENESS_THRESHOLD / TRIGGER_PROFILE_COOLDOWN_DAYS
- TRIGGER_PROFILE_BATCH_SIZE
"""

from src.core.triggers.base import (
    BaseTrigger,
    CooldownPolicy,
    TriggerCandidate,
    TriggerRunResult,
)
from src.core.triggers.compliance import COMPLIANCE_EXPIRY, ComplianceExpiryTrigger
from src.core.triggers.engine import TriggerEngine, TriggerEngineError
from src.core.triggers.inactivity import INACTIVITY_WARNING, InactivityTrigger
from src.core.triggers.profile import PROFILE_INCOMPLETE, ProfileCompletenessTrigger

__all__ = [
    # Engine
    "TriggerEngine",
    "TriggerEngineError",
    # Base types
    "BaseTrigger",
    "CooldownPolicy",
    "TriggerCandidate",
    "TriggerRunResult",
    # Triggers
    "ComplianceExpiryTrigger",
    "InactivityTrigger",
    "ProfileCompletenessTrigger",
    # Event types
    "COMPLIANCE_EXPIRY",
    "INACTIVITY_WARNING",
    "PROFILE_INCOMPLETE",
]
