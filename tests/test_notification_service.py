"""Tests for NotificationService.

Covers:
- Preference gating (skipped placeholder, no row, no realtime push)
- Absent preferences enabling every category
- Read state: mark_as_read idempotency, mark_all_as_read isolation
- unread_count recomputed from rows
- Realtime subscription filtered per user
"""

from __future__ import annotations

import pytest

from venturenest.errors import NotFoundFailure, ValidationFailure
from venturenest.models.notification import SKIPPED_NOTIFICATION_ID, NotificationType
from venturenest.persistence import Collection

USER_A = "user-a"
USER_B = "user-b"


class TestCreateNotification:
    """Tests for create_notification gating."""

    def test_no_preferences_row_inserts(self, notifications, gateway) -> None:
        """A user without preferences receives every category."""
        notification = notifications.create_notification(
            USER_A, "T", "M", NotificationType.MESSAGE_RECEIVED
        )

        assert not notification.is_skipped
        assert notification.is_read is False
        assert gateway.count(Collection.NOTIFICATIONS, {"user_id": USER_A}) == 1

    def test_disabled_category_is_skipped(self, notifications, preferences, gateway) -> None:
        """A disabled category produces no row and leaves unread_count unchanged."""
        notifications.create_notification(USER_A, "Old", "Earlier", "message_received")
        preferences.update_preferences(USER_A, {"listing_view": False})
        before = notifications.unread_count(USER_A)

        result = notifications.create_notification(
            USER_A, "New view", "Someone viewed your listing", "listing_view", related_id="l-1"
        )

        assert result.id == SKIPPED_NOTIFICATION_ID
        assert result.is_skipped
        assert result.related_id == "l-1"
        assert gateway.count(Collection.NOTIFICATIONS, {"user_id": USER_A}) == 1
        assert notifications.unread_count(USER_A) == before

    def test_other_categories_still_delivered(self, notifications, preferences) -> None:
        """Disabling one category leaves the others enabled."""
        preferences.update_preferences(USER_A, {"listing_view": False})

        result = notifications.create_notification(USER_A, "Saved", "Saved", "listing_save")

        assert not result.is_skipped

    def test_related_id_and_type_are_stored(self, notifications, gateway) -> None:
        created = notifications.create_notification(
            USER_A, "Access", "Requested", "document_access_request", related_id="req-1"
        )

        row = gateway.require(Collection.NOTIFICATIONS, created.id)
        assert row["type"] == "document_access_request"
        assert row["related_id"] == "req-1"

    @pytest.mark.parametrize("title,message", [("", "M"), ("   ", "M"), ("T", ""), ("T", "  ")])
    def test_blank_title_or_message_rejected(self, notifications, title, message) -> None:
        with pytest.raises(ValidationFailure):
            notifications.create_notification(USER_A, title, message, "message_received")

    def test_unknown_type_rejected(self, notifications) -> None:
        with pytest.raises(ValidationFailure):
            notifications.create_notification(USER_A, "T", "M", "carrier_pigeon")


class TestReadState:
    """Tests for read flags and unread counts."""

    def test_mark_as_read(self, notifications) -> None:
        created = notifications.create_notification(USER_A, "T", "M", "message_received")

        updated = notifications.mark_as_read(created.id)

        assert updated.is_read is True
        assert notifications.unread_count(USER_A) == 0

    def test_mark_as_read_is_idempotent(self, notifications, gateway, monkeypatch) -> None:
        """An already-read notification is returned without a write."""
        created = notifications.create_notification(USER_A, "T", "M", "message_received")
        notifications.mark_as_read(created.id)

        def fail_update(*args, **kwargs):
            raise AssertionError("unexpected write")

        monkeypatch.setattr(gateway, "update", fail_update)

        again = notifications.mark_as_read(created.id)
        assert again.is_read is True

    def test_mark_as_read_missing_raises_not_found(self, notifications) -> None:
        with pytest.raises(NotFoundFailure):
            notifications.mark_as_read("no-such-notification")

    def test_mark_all_as_read_only_touches_user(self, notifications, gateway) -> None:
        """mark_all_as_read flips the user's unread rows and leaves others alone."""
        for i in range(3):
            notifications.create_notification(USER_A, f"T{i}", "M", "message_received")
        notifications.create_notification(USER_B, "T", "M", "message_received")

        flipped = notifications.mark_all_as_read(USER_A)

        assert flipped == 3
        assert notifications.unread_count(USER_A) == 0
        assert all(
            row["is_read"]
            for row in gateway.find_many(Collection.NOTIFICATIONS, {"user_id": USER_A})
        )
        assert notifications.unread_count(USER_B) == 1

    def test_mark_all_as_read_counts_only_unread(self, notifications) -> None:
        first = notifications.create_notification(USER_A, "T1", "M", "message_received")
        notifications.create_notification(USER_A, "T2", "M", "message_received")
        notifications.mark_as_read(first.id)

        assert notifications.mark_all_as_read(USER_A) == 1
        assert notifications.mark_all_as_read(USER_A) == 0

    def test_list_for_user_newest_first(self, notifications) -> None:
        first = notifications.create_notification(USER_A, "First", "M", "message_received")
        second = notifications.create_notification(USER_A, "Second", "M", "message_received")
        notifications.create_notification(USER_B, "Other", "M", "message_received")

        listed = notifications.list_for_user(USER_A)

        assert [n.id for n in listed] == [second.id, first.id]
        assert [n.id for n in notifications.list_for_user(USER_A, limit=1)] == [second.id]


class TestSubscribe:
    """Tests for realtime delivery of inserted notifications."""

    def test_subscriber_receives_own_inserts(self, notifications) -> None:
        received = []
        subscription = notifications.subscribe(USER_A, received.append)

        created = notifications.create_notification(USER_A, "T", "M", "message_received")
        notifications.create_notification(USER_B, "T", "M", "message_received")

        assert [n.id for n in received] == [created.id]
        assert received[0].type is NotificationType.MESSAGE_RECEIVED
        subscription.close()

    def test_skipped_notifications_are_not_pushed(self, notifications, preferences) -> None:
        preferences.update_preferences(USER_A, {"listing_save": False})
        received = []
        notifications.subscribe(USER_A, received.append)

        notifications.create_notification(USER_A, "T", "M", "listing_save")

        assert received == []

    def test_closed_subscription_receives_nothing(self, notifications) -> None:
        received = []
        subscription = notifications.subscribe(USER_A, received.append)
        subscription.close()
        subscription.close()

        notifications.create_notification(USER_A, "T", "M", "message_received")

        assert received == []
        assert subscription.closed

    def test_failing_subscriber_does_not_break_insert(self, notifications) -> None:
        """A raising callback is isolated from the insert and other subscribers."""
        received = []

        def broken(_notification):
            raise RuntimeError("client went away")

        notifications.subscribe(USER_A, broken)
        notifications.subscribe(USER_A, received.append)

        created = notifications.create_notification(USER_A, "T", "M", "message_received")

        assert [n.id for n in received] == [created.id]
        assert notifications.unread_count(USER_A) == 1
