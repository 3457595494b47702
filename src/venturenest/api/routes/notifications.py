"""Notification routes for the VentureNest API.

- GET /v1/notifications (listNotifications)
- GET /v1/notifications/unread-count (getUnreadCount)
- POST /v1/notifications/{notification_id}/read (markNotificationRead)
- POST /v1/notifications/read-all (markAllNotificationsRead)

All routes act on the session user's notifications.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel

from venturenest.api.auth import RequireSession
from venturenest.api.container import Services
from venturenest.api.errors import ApiHttpError
from venturenest.models.notification import Notification

router = APIRouter(prefix="/v1/notifications", tags=["Notifications"])

MAX_LIMIT = 200


class NotificationList(BaseModel):
    """List of notifications, newest first."""

    items: list[Notification]


class UnreadCountResponse(BaseModel):
    """Unread notification count."""

    count: int


class MarkAllReadResponse(BaseModel):
    """Number of notifications flipped to read."""

    updated: int


@router.get("", response_model=NotificationList)
def list_notifications(
    session: RequireSession,
    services: Services,
    limit: Annotated[int | None, Query(ge=1, le=MAX_LIMIT)] = None,
) -> NotificationList:
    """List the session user's notifications."""
    return NotificationList(items=services.notifications.list_for_user(session.user_id, limit))


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(session: RequireSession, services: Services) -> UnreadCountResponse:
    """Return the session user's unread count."""
    return UnreadCountResponse(count=services.notifications.unread_count(session.user_id))


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    session: RequireSession, services: Services
) -> MarkAllReadResponse:
    """Mark every unread notification of the session user as read."""
    return MarkAllReadResponse(updated=services.notifications.mark_all_as_read(session.user_id))


@router.post("/{notification_id}/read", response_model=Notification)
def mark_notification_read(
    notification_id: str,
    session: RequireSession,
    services: Services,
) -> Notification:
    """Mark one of the session user's notifications as read.

    Raises:
        ApiHttpError: 404 if the notification belongs to another user.
    """
    notification = services.notifications.get_notification(notification_id)
    if notification.user_id != session.user_id:
        raise ApiHttpError(status_code=404, code="NOT_FOUND", message="Notification not found")
    return services.notifications.mark_as_read(notification_id)
