"""Pytest configuration and fixtures for VentureNest tests.

This module provides common fixtures and configuration for all tests.
Services are wired on the in-memory gateway and object store with a
deterministic clock that advances one second per reading.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest

from venturenest.models.business import BusinessProfile
from venturenest.models.document import Document
from venturenest.persistence import InMemoryGateway
from venturenest.persistence.db import VENTURENEST_DATABASE_URL_ENV, reset_engine
from venturenest.services.access import DocumentAccessService
from venturenest.services.business import BusinessService
from venturenest.services.documents import DocumentService
from venturenest.services.notifications import NotificationService, PreferenceService
from venturenest.session import Session
from venturenest.storage import (
    VENTURENEST_OBJECT_STORE_BACKEND_ENV,
    VENTURENEST_STORAGE_BUCKET_ENV,
    InMemoryObjectStore,
)
from venturenest.storage.object_store import VENTURENEST_PUBLIC_BASE_URL_ENV

TEST_PUBLIC_BASE_URL = "http://storage.test"
TEST_BUCKET = "business-assets"
OWNER_USER_ID = "owner-0001"
INVESTOR_USER_ID = "investor-0001"


class FakeClock:
    """Clock returning strictly increasing UTC datetimes."""

    def __init__(self, start: datetime | None = None, step: timedelta | None = None) -> None:
        self.current = start or datetime(2025, 1, 1, tzinfo=UTC)
        self.step = step or timedelta(seconds=1)

    def __call__(self) -> datetime:
        self.current = self.current + self.step
        return self.current


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test against the in-memory defaults."""
    for name in (
        VENTURENEST_DATABASE_URL_ENV,
        VENTURENEST_OBJECT_STORE_BACKEND_ENV,
        VENTURENEST_STORAGE_BUCKET_ENV,
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv(VENTURENEST_PUBLIC_BASE_URL_ENV, TEST_PUBLIC_BASE_URL)
    yield
    reset_engine()


@pytest.fixture
def clock() -> FakeClock:
    """Return a deterministic clock."""
    return FakeClock()


@pytest.fixture
def gateway() -> InMemoryGateway:
    """Return an empty in-memory gateway."""
    return InMemoryGateway()


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    """Return an empty in-memory object store."""
    return InMemoryObjectStore(public_base_url=TEST_PUBLIC_BASE_URL)


@pytest.fixture
def preferences(gateway: InMemoryGateway) -> PreferenceService:
    return PreferenceService(gateway)


@pytest.fixture
def notifications(
    gateway: InMemoryGateway, preferences: PreferenceService, clock: FakeClock
) -> NotificationService:
    return NotificationService(gateway, preferences, clock=clock)


@pytest.fixture
def access(
    gateway: InMemoryGateway, notifications: NotificationService, clock: FakeClock
) -> DocumentAccessService:
    return DocumentAccessService(gateway, notifications, clock=clock)


@pytest.fixture
def documents(
    gateway: InMemoryGateway, object_store: InMemoryObjectStore, clock: FakeClock
) -> DocumentService:
    return DocumentService(gateway, object_store, bucket=TEST_BUCKET, clock=clock)


@pytest.fixture
def business(
    gateway: InMemoryGateway, object_store: InMemoryObjectStore, clock: FakeClock
) -> BusinessService:
    return BusinessService(gateway, object_store, bucket=TEST_BUCKET, clock=clock)


@pytest.fixture
def owner_session() -> Session:
    """Session of the entrepreneur owning the business profile."""
    return Session(user_id=OWNER_USER_ID, email="owner@example.com")


@pytest.fixture
def investor_session() -> Session:
    """Session of an investor requesting documents."""
    return Session(user_id=INVESTOR_USER_ID, email="investor@example.com")


@pytest.fixture
def profile(business: BusinessService, owner_session: Session) -> BusinessProfile:
    """Business profile owned by the owner session."""
    return business.create_profile(owner_session, {"company_name": "Acme Robotics"})


@pytest.fixture
def confidential_document(documents: DocumentService, profile: BusinessProfile) -> Document:
    """Confidential pitch deck of the profile."""
    return documents.upload_document(
        profile.id,
        {
            "name": "Series A Deck",
            "filename": "deck.PDF",
            "content": b"%PDF-1.4 deck",
            "content_type": "application/pdf",
            "document_type": "pitch_deck",
            "is_confidential": True,
        },
    )


@pytest.fixture
def public_document(documents: DocumentService, profile: BusinessProfile) -> Document:
    """Non-confidential document of the profile."""
    return documents.upload_document(
        profile.id,
        {
            "name": "Company One-Pager",
            "filename": "one-pager.pdf",
            "content": b"%PDF-1.4 one pager",
            "is_confidential": False,
        },
    )
