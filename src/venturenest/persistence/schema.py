"""Relational layout of the VentureNest collections.

The SQLAlchemy tables defined here are the single source of truth for
column names, required fields and scalar defaults. The SQL gateway uses them
directly; the in-memory gateway uses them to validate records the same way.

Uniqueness rules are declared in UNIQUE_KEYS and turned into (partial) unique
indexes, so both gateways reject the same duplicates:
- one business profile per user
- one preferences row per user
- one pending access request per (document, investor)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    and_,
)


class Collection(str, Enum):
    """Logical collections exposed by the persistence gateway."""

    BUSINESS_PROFILES = "business_profiles"
    COMPANY_LISTINGS = "company_listings"
    DOCUMENTS = "documents"
    DOCUMENT_ACCESS_REQUESTS = "document_access_requests"
    NOTIFICATIONS = "notifications"
    NOTIFICATION_PREFERENCES = "notification_preferences"


class UniqueKey(NamedTuple):
    """Unique constraint over fields, optionally limited to rows matching where."""

    name: str
    fields: tuple[str, ...]
    where: dict[str, Any] | None = None


metadata = MetaData()

_TIMESTAMP = 40

business_profiles = Table(
    Collection.BUSINESS_PROFILES.value,
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(64), nullable=False),
    Column("company_name", String(200), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("logo_url", Text),
    Column("industry_tags", JSON),
    Column("website_url", Text),
    Column("social_media", JSON),
    Column("created_at", String(_TIMESTAMP), nullable=False),
    Column("updated_at", String(_TIMESTAMP), nullable=False),
)

company_listings = Table(
    Collection.COMPANY_LISTINGS.value,
    metadata,
    Column("id", String(36), primary_key=True),
    Column("business_profile_id", String(36), nullable=False, index=True),
    Column("title", String(200), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("asking_price", Float),
    Column("equity_percentage", Float),
    Column("is_full_company", Boolean, nullable=False, default=False),
    Column("status", String(20), nullable=False, default="draft"),
    Column("created_at", String(_TIMESTAMP), nullable=False),
    Column("updated_at", String(_TIMESTAMP), nullable=False),
)

documents = Table(
    Collection.DOCUMENTS.value,
    metadata,
    Column("id", String(36), primary_key=True),
    Column("business_profile_id", String(36), nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("file_url", Text, nullable=False),
    Column("storage_path", Text),
    Column("file_type", String(20), nullable=False, default=""),
    Column("document_type", String(40), nullable=False, default="other"),
    Column("description", Text),
    Column("is_confidential", Boolean, nullable=False, default=False),
    Column("version", Integer, nullable=False, default=1),
    Column("created_at", String(_TIMESTAMP), nullable=False),
    Column("updated_at", String(_TIMESTAMP), nullable=False),
)

document_access_requests = Table(
    Collection.DOCUMENT_ACCESS_REQUESTS.value,
    metadata,
    Column("id", String(36), primary_key=True),
    Column("document_id", String(36), nullable=False, index=True),
    Column("investor_id", String(64), nullable=False),
    Column("status", String(20), nullable=False, default="pending"),
    Column("requested_at", String(_TIMESTAMP), nullable=False),
    Column("responded_at", String(_TIMESTAMP)),
)

notifications = Table(
    Collection.NOTIFICATIONS.value,
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(64), nullable=False),
    Column("title", String(255), nullable=False),
    Column("message", Text, nullable=False),
    Column("type", String(40), nullable=False),
    Column("is_read", Boolean, nullable=False, default=False),
    Column("related_id", String(64)),
    Column("created_at", String(_TIMESTAMP), nullable=False),
    Index("ix_notifications_user_unread", "user_id", "is_read"),
)

notification_preferences = Table(
    Collection.NOTIFICATION_PREFERENCES.value,
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(64), nullable=False),
    Column("email_notifications", Boolean, nullable=False, default=True),
    Column("push_notifications", Boolean, nullable=False, default=True),
    Column("listing_view", Boolean, nullable=False, default=True),
    Column("listing_save", Boolean, nullable=False, default=True),
    Column("connection_request", Boolean, nullable=False, default=True),
    Column("document_access_request", Boolean, nullable=False, default=True),
    Column("document_access_response", Boolean, nullable=False, default=True),
    Column("message_received", Boolean, nullable=False, default=True),
)

TABLES: dict[str, Table] = {table.name: table for table in metadata.sorted_tables}

UNIQUE_KEYS: dict[str, list[UniqueKey]] = {
    Collection.BUSINESS_PROFILES.value: [
        UniqueKey("uq_business_profiles_user", ("user_id",)),
    ],
    Collection.NOTIFICATION_PREFERENCES.value: [
        UniqueKey("uq_notification_preferences_user", ("user_id",)),
    ],
    Collection.DOCUMENT_ACCESS_REQUESTS.value: [
        UniqueKey(
            "uq_document_access_requests_pending",
            ("document_id", "investor_id"),
            where={"status": "pending"},
        ),
    ],
}


def _build_unique_indexes() -> None:
    for table_name, keys in UNIQUE_KEYS.items():
        table = TABLES[table_name]
        for key in keys:
            columns = [table.c[field] for field in key.fields]
            kwargs: dict[str, Any] = {}
            if key.where:
                condition = and_(*(table.c[k] == v for k, v in key.where.items()))
                kwargs["sqlite_where"] = condition
                kwargs["postgresql_where"] = condition
            Index(key.name, *columns, unique=True, **kwargs)


_build_unique_indexes()


def collection_name(collection: Collection | str) -> str:
    """Normalize a Collection member or raw name to the table name."""
    if isinstance(collection, Collection):
        return collection.value
    return str(collection)
