"""Notification preference routes for the VentureNest API.

- GET /v1/notification-preferences (getNotificationPreferences)
- PUT /v1/notification-preferences (updateNotificationPreferences)
"""

from __future__ import annotations

from fastapi import APIRouter

from venturenest.api.auth import RequireSession
from venturenest.api.container import Services
from venturenest.models.notification import NotificationPreferences
from venturenest.services.notifications import UpdatePreferencesInput

router = APIRouter(prefix="/v1/notification-preferences", tags=["Notification Preferences"])


@router.get("", response_model=NotificationPreferences)
def get_notification_preferences(
    session: RequireSession, services: Services
) -> NotificationPreferences:
    """Return the effective preferences; every flag is true until first saved."""
    return services.preferences.resolve(session.user_id)


@router.put("", response_model=NotificationPreferences)
def update_notification_preferences(
    body: UpdatePreferencesInput,
    session: RequireSession,
    services: Services,
) -> NotificationPreferences:
    """Update some flags; omitted flags keep their current value."""
    return services.preferences.update_preferences(session.user_id, body)
