"""Tests for the VentureNest HTTP API.

Tests cover:
A) Health endpoint, request ID propagation and request ID log stamping
B) Session extraction: missing X-User-Id fails closed with 401
C) Access request routes: request, idempotent re-request, respond, owner listing,
   owner-only respond and listing (403)
D) Notification routes: list, unread count, mark read, mark all read
E) Preference routes: defaults, partial update, unknown flags
F) Error envelope for service failures, request validation and unhandled errors
"""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from venturenest.api.container import ServiceContainer
from venturenest.api.main import create_app
from venturenest.errors import StorageFailure
from venturenest.logging_config import RequestIdFilter, request_id_var
from venturenest.session import Session

OWNER = "owner-0001"
INVESTOR = "investor-0001"


def _headers(user_id: str) -> dict[str, str]:
    return {"X-User-Id": user_id}


@pytest.fixture
def container(gateway, object_store, clock) -> ServiceContainer:
    """Services wired on the test gateway, object store and clock."""
    return ServiceContainer.build(gateway=gateway, object_store=object_store, clock=clock)


@pytest.fixture
def client(container: ServiceContainer) -> TestClient:
    """Create a test client for the VentureNest API."""
    return TestClient(create_app(container))


@pytest.fixture
def seeded(container: ServiceContainer) -> dict[str, str]:
    """Profile with one confidential document, owned by OWNER."""
    profile = container.business.create_profile(
        Session(user_id=OWNER), {"company_name": "Acme Robotics"}
    )
    document = container.documents.upload_document(
        profile.id,
        {
            "name": "Series A Deck",
            "filename": "deck.pdf",
            "content": b"%PDF",
            "is_confidential": True,
        },
    )
    return {"profile_id": profile.id, "document_id": document.id}


class TestHealth:
    """Tests for GET /health."""

    def test_health_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "1.0"
        assert data["backend"] == "memory"
        assert data["time"].endswith("Z")

    def test_request_id_echoed(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Request-Id": "req-12345"})

        assert response.headers["X-Request-Id"] == "req-12345"

    def test_request_id_generated(self, client: TestClient) -> None:
        assert client.get("/health").headers["X-Request-Id"]

    def test_oversized_request_id_replaced(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Request-Id": "x" * 500})

        assert response.headers["X-Request-Id"] != "x" * 500

    def test_service_logs_carry_request_id(
        self,
        client: TestClient,
        seeded: dict[str, str],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Records logged while serving a request are stamped with its id."""
        handler = caplog.handler
        request_filter = RequestIdFilter()
        handler.addFilter(request_filter)
        try:
            with caplog.at_level(logging.INFO, logger="venturenest"):
                client.post(
                    f"/v1/documents/{seeded['document_id']}/access-requests",
                    headers={**_headers(INVESTOR), "X-Request-Id": "req-access-1"},
                )
        finally:
            handler.removeFilter(request_filter)

        [created] = [r for r in caplog.records if "Access request" in r.getMessage()]
        assert created.request_id == "req-access-1"
        assert request_id_var.get() is None


class TestSessionHeader:
    """Tests for X-User-Id extraction."""

    @pytest.mark.parametrize("headers", [{}, {"X-User-Id": "   "}])
    def test_missing_user_is_unauthorized(self, client: TestClient, headers) -> None:
        response = client.get("/v1/notifications", headers=headers)

        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "UNAUTHORIZED"
        assert body["request_id"] == response.headers["X-Request-Id"]


class TestAccessRequestRoutes:
    """Tests for the access request workflow over HTTP."""

    def test_request_then_repeat_returns_same_request(
        self, client: TestClient, seeded: dict[str, str]
    ) -> None:
        url = f"/v1/documents/{seeded['document_id']}/access-requests"

        first = client.post(url, headers=_headers(INVESTOR))
        second = client.post(url, headers=_headers(INVESTOR))

        assert first.status_code == 201
        assert first.json()["status"] == "pending"
        assert first.json()["investor_id"] == INVESTOR
        assert second.json()["id"] == first.json()["id"]

    def test_respond_and_owner_listing(self, client: TestClient, seeded: dict[str, str]) -> None:
        created = client.post(
            f"/v1/documents/{seeded['document_id']}/access-requests", headers=_headers(INVESTOR)
        ).json()

        responded = client.post(
            f"/v1/access-requests/{created['id']}/respond",
            json={"approved": True},
            headers=_headers(OWNER),
        )
        listed = client.get(
            f"/v1/business-profiles/{seeded['profile_id']}/access-requests",
            headers=_headers(OWNER),
        )

        assert responded.status_code == 200
        assert responded.json()["status"] == "approved"
        assert responded.json()["responded_at"] is not None
        [item] = listed.json()["items"]
        assert item["id"] == created["id"]
        assert item["document"]["name"] == "Series A Deck"

    def test_investor_cannot_self_approve(
        self, client: TestClient, container, seeded: dict[str, str]
    ) -> None:
        created = client.post(
            f"/v1/documents/{seeded['document_id']}/access-requests", headers=_headers(INVESTOR)
        ).json()

        response = client.post(
            f"/v1/access-requests/{created['id']}/respond",
            json={"approved": True},
            headers=_headers(INVESTOR),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"
        [request] = container.access.list_for_investor(Session(user_id=INVESTOR))
        assert request.status.value == "pending"

    def test_stranger_cannot_list_owner_requests(
        self, client: TestClient, seeded: dict[str, str]
    ) -> None:
        client.post(
            f"/v1/documents/{seeded['document_id']}/access-requests", headers=_headers(INVESTOR)
        )

        response = client.get(
            f"/v1/business-profiles/{seeded['profile_id']}/access-requests",
            headers=_headers("stranger"),
        )

        assert response.status_code == 403
        assert "items" not in response.json()

    def test_unknown_document_is_404(self, client: TestClient) -> None:
        response = client.post("/v1/documents/missing/access-requests", headers=_headers(INVESTOR))

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "NOT_FOUND"
        assert body["details"]["kind"] == "not_found"
        assert body["details"]["collection"] == "documents"

    def test_respond_requires_boolean_body(
        self, client: TestClient, seeded: dict[str, str]
    ) -> None:
        created = client.post(
            f"/v1/documents/{seeded['document_id']}/access-requests", headers=_headers(INVESTOR)
        ).json()

        response = client.post(
            f"/v1/access-requests/{created['id']}/respond",
            json={"approved": True, "note": "extra"},
            headers=_headers(OWNER),
        )

        assert response.status_code == 422
        assert response.json()["code"] == "REQUEST_VALIDATION_FAILED"


class TestNotificationRoutes:
    """Tests for notification listing and read state."""

    def test_owner_sees_access_request_notification(
        self, client: TestClient, seeded: dict[str, str]
    ) -> None:
        client.post(
            f"/v1/documents/{seeded['document_id']}/access-requests", headers=_headers(INVESTOR)
        )

        count = client.get("/v1/notifications/unread-count", headers=_headers(OWNER))
        listed = client.get("/v1/notifications", headers=_headers(OWNER))

        assert count.json() == {"count": 1}
        [item] = listed.json()["items"]
        assert item["type"] == "document_access_request"
        assert item["is_read"] is False

    def test_mark_read_and_read_all(self, client: TestClient, container) -> None:
        first = container.notifications.create_notification(OWNER, "A", "a", "message_received")
        container.notifications.create_notification(OWNER, "B", "b", "message_received")

        marked = client.post(f"/v1/notifications/{first.id}/read", headers=_headers(OWNER))
        rest = client.post("/v1/notifications/read-all", headers=_headers(OWNER))

        assert marked.status_code == 200
        assert marked.json()["is_read"] is True
        assert rest.json() == {"updated": 1}
        assert client.get("/v1/notifications/unread-count", headers=_headers(OWNER)).json() == {
            "count": 0
        }

    def test_other_users_notification_is_hidden(self, client: TestClient, container) -> None:
        theirs = container.notifications.create_notification(OWNER, "A", "a", "message_received")

        response = client.post(f"/v1/notifications/{theirs.id}/read", headers=_headers(INVESTOR))

        assert response.status_code == 404
        assert container.notifications.unread_count(OWNER) == 1

    def test_limit_is_bounded(self, client: TestClient) -> None:
        response = client.get("/v1/notifications?limit=0", headers=_headers(OWNER))

        assert response.status_code == 422


class TestPreferenceRoutes:
    """Tests for notification preference routes."""

    def test_defaults_then_partial_update(self, client: TestClient) -> None:
        defaults = client.get("/v1/notification-preferences", headers=_headers(OWNER))

        updated = client.put(
            "/v1/notification-preferences",
            json={"message_received": False},
            headers=_headers(OWNER),
        )

        assert defaults.status_code == 200
        assert defaults.json()["message_received"] is True
        assert defaults.json()["id"] is None
        assert updated.status_code == 200
        assert updated.json()["message_received"] is False
        assert updated.json()["listing_view"] is True
        assert updated.json()["id"] is not None

    def test_unknown_flag_rejected(self, client: TestClient) -> None:
        response = client.put(
            "/v1/notification-preferences", json={"sms": True}, headers=_headers(OWNER)
        )

        assert response.status_code == 422


class TestErrorEnvelope:
    """Tests for error rendering."""

    def test_backend_failure_is_503(
        self, client: TestClient, container, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def unavailable(*args, **kwargs):
            raise StorageFailure("database unavailable", collection="notifications")

        monkeypatch.setattr(container.gateway, "count", unavailable)

        response = client.get("/v1/notifications/unread-count", headers=_headers(OWNER))

        assert response.status_code == 503
        assert response.json()["code"] == "SERVICE_UNAVAILABLE"
        assert response.json()["details"]["kind"] == "unavailable"

    def test_unhandled_error_is_500_without_internals(
        self, container, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def boom(*args, **kwargs):
            raise RuntimeError("secret internals")

        monkeypatch.setattr(container.notifications, "unread_count", boom)
        client = TestClient(create_app(container), raise_server_exceptions=False)

        response = client.get("/v1/notifications/unread-count", headers=_headers(OWNER))

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
        assert "secret" not in response.text

    def test_unknown_route_uses_envelope(self, client: TestClient) -> None:
        response = client.get("/v1/unknown", headers=_headers(OWNER))

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"
