"""NotificationService - preference-gated notification dispatch.

Responsibilities:
- Create notifications, skipping categories the recipient has disabled
- Track read state and compute unread counts from stored rows
- Forward newly inserted notifications to realtime subscribers

A suppressed notification is never written, so it never reaches unread
counts or realtime subscribers. The caller still gets a Notification back
(id "skipped") so both outcomes can be handled the same way.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from venturenest.errors import ValidationFailure
from venturenest.models.notification import (
    SKIPPED_NOTIFICATION_ID,
    Notification,
    NotificationType,
)
from venturenest.persistence import Collection, PersistenceGateway
from venturenest.realtime import Subscription
from venturenest.services.notifications.preferences import PreferenceService, is_enabled
from venturenest.timeutil import Clock, to_iso, utc_now

logger = logging.getLogger(__name__)


class NotificationService:
    """Service layer for notification operations.

    Usage:
        service = NotificationService(gateway)
        service.create_notification(user_id, "New view", "Someone viewed ...", "listing_view")
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        preferences: PreferenceService | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize NotificationService.

        Args:
            gateway: Persistence gateway for notification rows.
            preferences: Preference service; built on the same gateway if None.
            clock: Source of created_at timestamps.
        """
        self._gateway = gateway
        self._preferences = preferences or PreferenceService(gateway)
        self._clock = clock

    @property
    def preferences(self) -> PreferenceService:
        """Return the preference service used for gating."""
        return self._preferences

    def create_notification(
        self,
        user_id: str,
        title: str,
        message: str,
        notification_type: NotificationType | str,
        related_id: str | None = None,
    ) -> Notification:
        """Create a notification unless the user has disabled its category.

        Returns:
            The stored notification, or an unpersisted one with id "skipped".

        Raises:
            ValidationFailure: Blank title or message, or unknown type.
            StorageFailure: The insert failed.
        """
        if not title or not title.strip():
            raise ValidationFailure("Notification title is required")
        if not message or not message.strip():
            raise ValidationFailure("Notification message is required")
        try:
            kind = NotificationType(notification_type)
        except ValueError as e:
            raise ValidationFailure(f"Unknown notification type {notification_type!r}") from e

        preferences = self._preferences.get_preferences(user_id)
        if not is_enabled(preferences, kind):
            logger.debug("Suppressed %s notification for user %s", kind.value, user_id)
            return Notification(
                id=SKIPPED_NOTIFICATION_ID,
                user_id=user_id,
                title=title,
                message=message,
                type=kind,
                is_read=False,
                related_id=related_id,
                created_at=self._clock(),
            )

        row = self._gateway.insert(
            Collection.NOTIFICATIONS,
            {
                "user_id": user_id,
                "title": title,
                "message": message,
                "type": kind.value,
                "is_read": False,
                "related_id": related_id,
                "created_at": to_iso(self._clock()),
            },
        )
        logger.info("Created %s notification %s for user %s", kind.value, row["id"], user_id)
        return Notification.model_validate(row)

    def list_for_user(self, user_id: str, limit: int | None = None) -> list[Notification]:
        """Return the user's notifications, newest first."""
        rows = self._gateway.find_many(
            Collection.NOTIFICATIONS,
            {"user_id": user_id},
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        return [Notification.model_validate(row) for row in rows]

    def get_notification(self, notification_id: str) -> Notification:
        """Return a notification.

        Raises:
            NotFoundFailure: The notification does not exist.
        """
        return Notification.model_validate(
            self._gateway.require(Collection.NOTIFICATIONS, notification_id)
        )

    def mark_as_read(self, notification_id: str) -> Notification:
        """Mark one notification as read. No write happens if it already is.

        Raises:
            NotFoundFailure: The notification does not exist.
        """
        row = self._gateway.require(Collection.NOTIFICATIONS, notification_id)
        if row.get("is_read"):
            return Notification.model_validate(row)
        row = self._gateway.update(Collection.NOTIFICATIONS, notification_id, {"is_read": True})
        return Notification.model_validate(row)

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification of the user as read in one bulk update.

        Returns:
            Number of notifications flipped.
        """
        flipped = self._gateway.update_where(
            Collection.NOTIFICATIONS,
            {"user_id": user_id, "is_read": False},
            {"is_read": True},
        )
        logger.info("Marked %d notification(s) read for user %s", flipped, user_id)
        return flipped

    def unread_count(self, user_id: str) -> int:
        """Count the user's unread notifications from stored rows."""
        return self._gateway.count(Collection.NOTIFICATIONS, {"user_id": user_id, "is_read": False})

    def subscribe(
        self,
        user_id: str,
        on_insert: Callable[[Notification], None],
    ) -> Subscription:
        """Receive every notification inserted for the user from now on.

        Delivery is best effort with no replay; re-fetch with list_for_user()
        after reconnecting.
        """

        def _forward(row: dict[str, Any]) -> None:
            on_insert(Notification.model_validate(row))

        return self._gateway.subscribe_insert(
            Collection.NOTIFICATIONS, {"user_id": user_id}, _forward
        )
