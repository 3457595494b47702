"""Notification and notification preference models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

SKIPPED_NOTIFICATION_ID = "skipped"


class NotificationType(str, Enum):
    """Category of a user-facing notification."""

    LISTING_VIEW = "listing_view"
    LISTING_SAVE = "listing_save"
    CONNECTION_REQUEST = "connection_request"
    DOCUMENT_ACCESS_REQUEST = "document_access_request"
    DOCUMENT_ACCESS_APPROVED = "document_access_approved"
    DOCUMENT_ACCESS_REJECTED = "document_access_rejected"
    MESSAGE_RECEIVED = "message_received"


# Category -> preference flag that gates it.
PREFERENCE_FLAG_BY_TYPE: dict[NotificationType, str] = {
    NotificationType.LISTING_VIEW: "listing_view",
    NotificationType.LISTING_SAVE: "listing_save",
    NotificationType.CONNECTION_REQUEST: "connection_request",
    NotificationType.DOCUMENT_ACCESS_REQUEST: "document_access_request",
    NotificationType.DOCUMENT_ACCESS_APPROVED: "document_access_response",
    NotificationType.DOCUMENT_ACCESS_REJECTED: "document_access_response",
    NotificationType.MESSAGE_RECEIVED: "message_received",
}

CATEGORY_FLAGS = (
    "listing_view",
    "listing_save",
    "connection_request",
    "document_access_request",
    "document_access_response",
    "message_received",
)
CHANNEL_FLAGS = ("email_notifications", "push_notifications")
PREFERENCE_FLAGS = CHANNEL_FLAGS + CATEGORY_FLAGS


class Notification(BaseModel):
    """User-facing notification. Only is_read is ever mutated."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    is_read: bool = False
    related_id: str | None = None
    created_at: datetime | None = None

    @property
    def is_skipped(self) -> bool:
        """Return True for the placeholder returned when preferences suppress a notification."""
        return self.id == SKIPPED_NOTIFICATION_ID


class NotificationPreferences(BaseModel):
    """Per-user opt-in flags for notification categories and channels.

    A user without a stored row behaves as if every flag were True.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    user_id: str
    email_notifications: bool = True
    push_notifications: bool = True
    listing_view: bool = True
    listing_save: bool = True
    connection_request: bool = True
    document_access_request: bool = True
    document_access_response: bool = True
    message_received: bool = True
