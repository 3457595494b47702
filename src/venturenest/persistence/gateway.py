"""Persistence gateway interface.

The gateway is the only component that talks to the relational backend. It
exposes typed CRUD over the VentureNest collections plus a realtime INSERT
feed. Records cross the boundary as plain dicts; services convert them to
Pydantic models.

Contract (all implementations):
- insert assigns "id" (UUID4) when absent, stamps created_at/updated_at on
  collections that have them, applies scalar column defaults, and rejects
  unknown fields or missing required fields with ValidationFailure.
- Unique keys from schema.UNIQUE_KEYS are enforced with ConflictFailure.
- update/remove on a missing id raise NotFoundFailure.
- update_where applies one patch to every matching row atomically.
- Backend faults surface as StorageFailure. Nothing is retried.
- Every committed insert is published to the realtime hub.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Table

from venturenest.errors import NotFoundFailure, ValidationFailure
from venturenest.filters import RecordFilter
from venturenest.persistence.schema import TABLES, Collection, collection_name
from venturenest.realtime import InsertCallback, RealtimeHub, Subscription
from venturenest.timeutil import utc_now_iso

Record = dict[str, Any]


def resolve_table(collection: Collection | str) -> Table:
    """Return the table backing a collection.

    Raises:
        ValidationFailure: If the collection is unknown.
    """
    name = collection_name(collection)
    table = TABLES.get(name)
    if table is None:
        raise ValidationFailure(f"Unknown collection {name!r}", collection=name)
    return table


def check_fields(table: Table, fields: Mapping[str, Any]) -> None:
    """Reject field names the collection does not have."""
    unknown = sorted(set(fields) - set(table.c.keys()))
    if unknown:
        raise ValidationFailure(
            f"Unknown field(s) {', '.join(unknown)}",
            collection=table.name,
        )


def _scalar_default(table: Table, field: str) -> tuple[bool, Any]:
    default = table.c[field].default
    if default is not None and default.is_scalar:
        return True, default.arg
    return False, None


def prepare_insert(table: Table, record: Mapping[str, Any]) -> Record:
    """Validate a record for insertion and fill generated fields.

    Raises:
        ValidationFailure: On unknown fields or missing required fields.
    """
    check_fields(table, record)
    row: Record = dict(record)

    if not row.get("id"):
        row["id"] = str(uuid.uuid4())

    now = utc_now_iso()
    if "created_at" in table.c and not row.get("created_at"):
        row["created_at"] = now
    if "updated_at" in table.c and not row.get("updated_at"):
        row["updated_at"] = row.get("created_at", now)

    for column in table.c:
        if column.name in row:
            continue
        has_default, value = _scalar_default(table, column.name)
        row[column.name] = value if has_default else None

    missing = sorted(
        column.name for column in table.c if not column.nullable and row.get(column.name) is None
    )
    if missing:
        raise ValidationFailure(
            f"Missing required field(s) {', '.join(missing)}",
            collection=table.name,
        )
    return row


def prepare_patch(table: Table, patch: Mapping[str, Any]) -> Record:
    """Validate an update patch and stamp updated_at.

    Raises:
        ValidationFailure: On unknown fields, an id change, or nulling a required field.
    """
    check_fields(table, patch)
    if "id" in patch:
        raise ValidationFailure("Record id cannot be changed", collection=table.name)

    nulled = sorted(
        field for field, value in patch.items() if value is None and not table.c[field].nullable
    )
    if nulled:
        raise ValidationFailure(
            f"Required field(s) cannot be null: {', '.join(nulled)}",
            collection=table.name,
        )

    values: Record = dict(patch)
    if "updated_at" in table.c:
        values["updated_at"] = utc_now_iso()
    return values


class PersistenceGateway(ABC):
    """Abstract base class for relational backends.

    Implementations:
    - InMemoryGateway: process-local dict storage (dev/test)
    - SqlGateway: SQLAlchemy Core over SQLite or PostgreSQL
    """

    def __init__(self, hub: RealtimeHub | None = None) -> None:
        self._hub = hub or RealtimeHub()

    @property
    def hub(self) -> RealtimeHub:
        """Return the realtime hub inserts are published to."""
        return self._hub

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for logging."""
        ...

    @abstractmethod
    def insert(self, collection: Collection | str, record: Mapping[str, Any]) -> Record:
        """Insert a record and return it as stored.

        Raises:
            ValidationFailure: Unknown or missing fields.
            ConflictFailure: A unique key is already taken.
            StorageFailure: The backend cannot complete the write.
        """
        ...

    @abstractmethod
    def update(
        self,
        collection: Collection | str,
        record_id: str,
        patch: Mapping[str, Any],
    ) -> Record:
        """Apply a patch to one record and return the updated record.

        Raises:
            NotFoundFailure: No record has this id.
            ValidationFailure: Unknown fields or a required field set to null.
            ConflictFailure: The patch violates a unique key.
            StorageFailure: The backend cannot complete the write.
        """
        ...

    @abstractmethod
    def update_where(
        self,
        collection: Collection | str,
        record_filter: RecordFilter,
        patch: Mapping[str, Any],
    ) -> int:
        """Apply a patch to every matching record in one atomic operation.

        Returns:
            Number of records updated.
        """
        ...

    @abstractmethod
    def find_one(
        self,
        collection: Collection | str,
        record_filter: RecordFilter,
    ) -> Record | None:
        """Return the first record matching the filter, or None."""
        ...

    @abstractmethod
    def find_many(
        self,
        collection: Collection | str,
        record_filter: RecordFilter | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Record]:
        """Return all records matching the filter, optionally ordered and limited."""
        ...

    @abstractmethod
    def count(self, collection: Collection | str, record_filter: RecordFilter | None = None) -> int:
        """Return the number of records matching the filter."""
        ...

    @abstractmethod
    def remove(self, collection: Collection | str, record_id: str) -> None:
        """Delete a record by id.

        Raises:
            NotFoundFailure: No record has this id.
            StorageFailure: The backend cannot complete the deletion.
        """
        ...

    def get(self, collection: Collection | str, record_id: str) -> Record | None:
        """Return a record by id, or None."""
        return self.find_one(collection, {"id": record_id})

    def require(self, collection: Collection | str, record_id: str) -> Record:
        """Return a record by id.

        Raises:
            NotFoundFailure: No record has this id.
        """
        record = self.get(collection, record_id)
        if record is None:
            name = collection_name(collection)
            raise NotFoundFailure("Record not found", collection=name, record_id=record_id)
        return record

    def subscribe_insert(
        self,
        collection: Collection | str,
        record_filter: RecordFilter | None,
        callback: InsertCallback,
    ) -> Subscription:
        """Subscribe to inserts into a collection that match the filter."""
        return self._hub.subscribe(collection_name(collection), record_filter, callback)

    def _publish_insert(self, table: Table, row: Record) -> None:
        self._hub.publish_insert(table.name, row)
