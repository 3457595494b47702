"""Tests for notification preference resolution and updates."""

from __future__ import annotations

import pytest

from venturenest.errors import ValidationFailure
from venturenest.models.notification import (
    PREFERENCE_FLAGS,
    NotificationPreferences,
    NotificationType,
)
from venturenest.persistence import Collection
from venturenest.services.notifications import UpdatePreferencesInput, is_enabled

USER = "user-prefs"


class TestResolve:
    """Tests for reading preferences."""

    def test_absent_row_returns_none(self, preferences) -> None:
        assert preferences.get_preferences(USER) is None

    def test_resolve_defaults_every_flag_true(self, preferences) -> None:
        resolved = preferences.resolve(USER)

        assert resolved.id is None
        assert resolved.user_id == USER
        assert all(getattr(resolved, flag) for flag in PREFERENCE_FLAGS)


class TestUpdatePreferences:
    """Tests for lazily-created preference rows."""

    def test_first_update_creates_row_with_other_flags_true(self, preferences, gateway) -> None:
        updated = preferences.update_preferences(USER, {"listing_view": False})

        assert updated.id is not None
        assert updated.listing_view is False
        assert updated.listing_save is True
        assert updated.email_notifications is True
        assert gateway.count(Collection.NOTIFICATION_PREFERENCES, {"user_id": USER}) == 1

    def test_second_update_patches_existing_row(self, preferences, gateway) -> None:
        first = preferences.update_preferences(USER, {"listing_view": False})

        second = preferences.update_preferences(USER, {"message_received": False})

        assert second.id == first.id
        assert second.listing_view is False
        assert second.message_received is False
        assert gateway.count(Collection.NOTIFICATION_PREFERENCES, {"user_id": USER}) == 1

    def test_accepts_input_model(self, preferences) -> None:
        updated = preferences.update_preferences(
            USER, UpdatePreferencesInput(push_notifications=False)
        )

        assert updated.push_notifications is False

    def test_empty_update_on_existing_row_is_noop(self, preferences) -> None:
        first = preferences.update_preferences(USER, {"listing_view": False})

        again = preferences.update_preferences(USER, {})

        assert again == first

    def test_unknown_flag_rejected(self, preferences, gateway) -> None:
        with pytest.raises(ValidationFailure):
            preferences.update_preferences(USER, {"sms_notifications": True})
        assert gateway.count(Collection.NOTIFICATION_PREFERENCES) == 0

    def test_non_boolean_rejected(self, preferences) -> None:
        with pytest.raises(ValidationFailure):
            preferences.update_preferences(USER, {"listing_view": "no"})


class TestIsEnabled:
    """Tests for the category gating table."""

    def test_absent_preferences_enable_everything(self) -> None:
        assert all(is_enabled(None, kind) for kind in NotificationType)

    @pytest.mark.parametrize(
        "kind,flag",
        [
            (NotificationType.LISTING_VIEW, "listing_view"),
            (NotificationType.LISTING_SAVE, "listing_save"),
            (NotificationType.CONNECTION_REQUEST, "connection_request"),
            (NotificationType.DOCUMENT_ACCESS_REQUEST, "document_access_request"),
            (NotificationType.DOCUMENT_ACCESS_APPROVED, "document_access_response"),
            (NotificationType.DOCUMENT_ACCESS_REJECTED, "document_access_response"),
            (NotificationType.MESSAGE_RECEIVED, "message_received"),
        ],
    )
    def test_each_type_gated_by_its_flag(self, kind, flag) -> None:
        disabled = NotificationPreferences(user_id=USER, **{flag: False})

        assert is_enabled(disabled, kind) is False
        assert is_enabled(NotificationPreferences(user_id=USER), kind) is True

    def test_channel_flags_do_not_gate_categories(self) -> None:
        prefs = NotificationPreferences(
            user_id=USER, email_notifications=False, push_notifications=False
        )

        assert all(is_enabled(prefs, kind) for kind in NotificationType)
