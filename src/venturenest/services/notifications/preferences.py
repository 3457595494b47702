"""Notification preference resolution.

Preferences are per-user boolean flags, one per notification category plus
two channel flags. A user without a stored row is treated as having every
flag enabled; the row is created lazily on the first update.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool

from venturenest.errors import ConflictFailure
from venturenest.models.notification import (
    PREFERENCE_FLAG_BY_TYPE,
    PREFERENCE_FLAGS,
    NotificationPreferences,
    NotificationType,
)
from venturenest.persistence import Collection, PersistenceGateway
from venturenest.validation import parse_input

logger = logging.getLogger(__name__)


class UpdatePreferencesInput(BaseModel):
    """Partial preference update. Unset fields are left untouched."""

    model_config = ConfigDict(extra="forbid")

    email_notifications: StrictBool | None = None
    push_notifications: StrictBool | None = None
    listing_view: StrictBool | None = None
    listing_save: StrictBool | None = None
    connection_request: StrictBool | None = None
    document_access_request: StrictBool | None = None
    document_access_response: StrictBool | None = None
    message_received: StrictBool | None = None

    def changes(self) -> dict[str, bool]:
        """Return only the flags that were explicitly provided."""
        provided = self.model_dump(exclude_none=True)
        return {k: v for k, v in provided.items() if k in PREFERENCE_FLAGS}


def is_enabled(
    preferences: NotificationPreferences | None,
    notification_type: NotificationType,
) -> bool:
    """Return True if the preferences allow a notification of this type.

    Absent preferences enable every category.
    """
    if preferences is None:
        return True
    flag = PREFERENCE_FLAG_BY_TYPE.get(NotificationType(notification_type))
    if flag is None:
        return True
    return bool(getattr(preferences, flag))


def _coerce_input(partial: UpdatePreferencesInput | Mapping[str, Any]) -> dict[str, bool]:
    return parse_input(
        UpdatePreferencesInput,
        partial,
        collection=Collection.NOTIFICATION_PREFERENCES.value,
    ).changes()


class PreferenceService:
    """Reads and upserts notification preferences."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        self._gateway = gateway

    def get_preferences(self, user_id: str) -> NotificationPreferences | None:
        """Return the stored preferences, or None if the user has none."""
        row = self._gateway.find_one(Collection.NOTIFICATION_PREFERENCES, {"user_id": user_id})
        if row is None:
            return None
        return NotificationPreferences.model_validate(row)

    def resolve(self, user_id: str) -> NotificationPreferences:
        """Return the effective preferences, defaulting every flag to True."""
        return self.get_preferences(user_id) or NotificationPreferences(user_id=user_id)

    def update_preferences(
        self,
        user_id: str,
        partial: UpdatePreferencesInput | Mapping[str, Any],
    ) -> NotificationPreferences:
        """Update the user's preferences, creating the row if absent.

        New rows take the provided flags and True for every other flag.
        Concurrent edits are last-writer-wins per field.

        Raises:
            ValidationFailure: Unknown flag names or non-boolean values.
        """
        changes = _coerce_input(partial)
        existing = self.get_preferences(user_id)

        if existing is None:
            seeded = {flag: changes.get(flag, True) for flag in PREFERENCE_FLAGS}
            try:
                row = self._gateway.insert(
                    Collection.NOTIFICATION_PREFERENCES, {"user_id": user_id, **seeded}
                )
                logger.info("Created notification preferences for user %s", user_id)
                return NotificationPreferences.model_validate(row)
            except ConflictFailure:
                # Another writer created the row between our read and insert.
                existing = self.get_preferences(user_id)
                if existing is None:
                    raise

        if not changes:
            return existing

        row = self._gateway.update(Collection.NOTIFICATION_PREFERENCES, existing.id, changes)
        logger.info(
            "Updated notification preferences for user %s: %s", user_id, sorted(changes)
        )
        return NotificationPreferences.model_validate(row)
