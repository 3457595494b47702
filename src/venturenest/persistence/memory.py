"""In-memory persistence gateway.

Used for development and tests when no database URL is configured. Mirrors
the SQL gateway's validation and uniqueness behavior so services behave the
same on both backends. All mutations are serialised behind one lock, which
also makes update_where atomic.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Table

from venturenest.errors import ConflictFailure, NotFoundFailure
from venturenest.filters import RecordFilter, matches_filter
from venturenest.persistence.gateway import (
    PersistenceGateway,
    Record,
    check_fields,
    prepare_insert,
    prepare_patch,
    resolve_table,
)
from venturenest.persistence.schema import TABLES, UNIQUE_KEYS, Collection
from venturenest.realtime import RealtimeHub

logger = logging.getLogger(__name__)


class InMemoryGateway(PersistenceGateway):
    """Dict-backed gateway. Records are copied on the way in and out."""

    def __init__(self, hub: RealtimeHub | None = None) -> None:
        super().__init__(hub)
        self._lock = threading.Lock()
        self._rows: dict[str, dict[str, Record]] = {name: {} for name in TABLES}

    @property
    def backend_name(self) -> str:
        return "memory"

    def clear(self) -> None:
        """Drop every stored record. For testing only."""
        with self._lock:
            for rows in self._rows.values():
                rows.clear()

    def _check_unique(self, table: Table, candidate: Record) -> None:
        rows = self._rows[table.name]
        for key in UNIQUE_KEYS.get(table.name, ()):
            if key.where and not matches_filter(candidate, key.where):
                continue
            wanted = {field: candidate.get(field) for field in key.fields}
            for existing in rows.values():
                if existing["id"] == candidate["id"]:
                    continue
                if key.where and not matches_filter(existing, key.where):
                    continue
                if matches_filter(existing, wanted):
                    raise ConflictFailure(
                        f"Duplicate value for unique key {key.name}",
                        collection=table.name,
                        record_id=existing["id"],
                    )

    def insert(self, collection: Collection | str, record: Mapping[str, Any]) -> Record:
        table = resolve_table(collection)
        row = prepare_insert(table, copy.deepcopy(dict(record)))
        with self._lock:
            rows = self._rows[table.name]
            if row["id"] in rows:
                raise ConflictFailure(
                    "Duplicate primary key", collection=table.name, record_id=row["id"]
                )
            self._check_unique(table, row)
            rows[row["id"]] = row
            stored = copy.deepcopy(row)
        self._publish_insert(table, stored)
        return copy.deepcopy(stored)

    def update(
        self,
        collection: Collection | str,
        record_id: str,
        patch: Mapping[str, Any],
    ) -> Record:
        table = resolve_table(collection)
        values = prepare_patch(table, copy.deepcopy(dict(patch)))
        with self._lock:
            rows = self._rows[table.name]
            existing = rows.get(record_id)
            if existing is None:
                raise NotFoundFailure(
                    "Record not found", collection=table.name, record_id=record_id
                )
            updated = {**existing, **values}
            self._check_unique(table, updated)
            rows[record_id] = updated
            return copy.deepcopy(updated)

    def update_where(
        self,
        collection: Collection | str,
        record_filter: RecordFilter,
        patch: Mapping[str, Any],
    ) -> int:
        table = resolve_table(collection)
        values = prepare_patch(table, copy.deepcopy(dict(patch)))
        check_fields(table, record_filter)
        with self._lock:
            rows = self._rows[table.name]
            targets = [rid for rid, row in rows.items() if matches_filter(row, record_filter)]
            staged = {rid: {**rows[rid], **values} for rid in targets}
            for row in staged.values():
                self._check_unique(table, row)
            rows.update(staged)
        return len(targets)

    def find_one(self, collection: Collection | str, record_filter: RecordFilter) -> Record | None:
        table = resolve_table(collection)
        check_fields(table, record_filter)
        with self._lock:
            for row in self._rows[table.name].values():
                if matches_filter(row, record_filter):
                    return copy.deepcopy(row)
        return None

    def find_many(
        self,
        collection: Collection | str,
        record_filter: RecordFilter | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Record]:
        table = resolve_table(collection)
        check_fields(table, record_filter or {})
        if order_by is not None:
            check_fields(table, {order_by: None})
        with self._lock:
            matched = [
                copy.deepcopy(row)
                for row in self._rows[table.name].values()
                if matches_filter(row, record_filter)
            ]
        if order_by is not None:
            # None sorts first ascending, last descending.
            matched.sort(
                key=lambda r: (r.get(order_by) is not None, r.get(order_by)),
                reverse=descending,
            )
        if limit is not None:
            matched = matched[: max(0, limit)]
        return matched

    def count(self, collection: Collection | str, record_filter: RecordFilter | None = None) -> int:
        table = resolve_table(collection)
        check_fields(table, record_filter or {})
        with self._lock:
            return sum(
                1 for row in self._rows[table.name].values() if matches_filter(row, record_filter)
            )

    def remove(self, collection: Collection | str, record_id: str) -> None:
        table = resolve_table(collection)
        with self._lock:
            rows = self._rows[table.name]
            if record_id not in rows:
                raise NotFoundFailure(
                    "Record not found", collection=table.name, record_id=record_id
                )
            del rows[record_id]
        logger.debug("Removed %s from %s", record_id, table.name)
