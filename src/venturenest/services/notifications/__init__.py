"""Notification services for VentureNest.

Provides NotificationService for preference-gated dispatch, read state and
realtime delivery, and PreferenceService for per-user category flags.
"""

from venturenest.services.notifications.preferences import (
    PreferenceService,
    UpdatePreferencesInput,
    is_enabled,
)
from venturenest.services.notifications.service import NotificationService

__all__ = [
    "NotificationService",
    "PreferenceService",
    "UpdatePreferencesInput",
    "is_enabled",
]
