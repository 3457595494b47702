"""SQLAlchemy-backed persistence gateway.

Runs every operation in its own transaction (engine.begin()). Works against
PostgreSQL in production and SQLite for local runs and tests; the partial
unique index on pending access requests is supported by both.

Error mapping:
- IntegrityError -> ConflictFailure
- any other SQLAlchemyError -> StorageFailure
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import Table, and_, delete, func, select, true, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from venturenest.errors import ConflictFailure, NotFoundFailure, StorageFailure
from venturenest.filters import RecordFilter, is_multi_value
from venturenest.persistence.gateway import (
    PersistenceGateway,
    Record,
    check_fields,
    prepare_insert,
    prepare_patch,
    resolve_table,
)
from venturenest.persistence.schema import Collection, metadata
from venturenest.realtime import RealtimeHub

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Connection, Engine

logger = logging.getLogger(__name__)


def build_where(table: Table, record_filter: RecordFilter | None) -> ColumnElement[bool]:
    """Translate an equality filter into a SQL WHERE clause."""
    if not record_filter:
        return true()
    check_fields(table, record_filter)
    clauses = []
    for field, value in record_filter.items():
        column = table.c[field]
        if is_multi_value(value):
            clauses.append(column.in_(list(value)))
        elif value is None:
            clauses.append(column.is_(None))
        else:
            clauses.append(column == value)
    return and_(*clauses)


class SqlGateway(PersistenceGateway):
    """Gateway over a SQLAlchemy engine."""

    def __init__(
        self,
        engine: Engine,
        hub: RealtimeHub | None = None,
        *,
        create_schema: bool = False,
    ) -> None:
        """Initialize the gateway.

        Args:
            engine: SQLAlchemy engine to run statements on.
            hub: Realtime hub to publish inserts to.
            create_schema: Create missing tables and indexes on startup.
        """
        super().__init__(hub)
        self._engine = engine
        if create_schema:
            self.create_schema()

    @property
    def backend_name(self) -> str:
        return f"sql:{self._engine.dialect.name}"

    @property
    def engine(self) -> Engine:
        """Return the underlying engine."""
        return self._engine

    def create_schema(self) -> None:
        """Create all tables and indexes that do not exist yet."""
        with self._transaction("schema") as conn:
            metadata.create_all(conn)
        logger.info("Ensured VentureNest schema on %s", self.backend_name)

    @contextmanager
    def _transaction(self, collection: str, record_id: str | None = None) -> Iterator[Connection]:
        try:
            with self._engine.begin() as conn:
                yield conn
        except IntegrityError as e:
            raise ConflictFailure(
                "Write violates a unique constraint",
                collection=collection,
                record_id=record_id,
            ) from e
        except SQLAlchemyError as e:
            logger.warning("Database operation on %s failed: %s", collection, e)
            raise StorageFailure(
                "Database operation failed",
                collection=collection,
                record_id=record_id,
                cause=e,
            ) from e

    def insert(self, collection: Collection | str, record: Mapping[str, Any]) -> Record:
        table = resolve_table(collection)
        row = prepare_insert(table, record)
        with self._transaction(table.name, row["id"]) as conn:
            conn.execute(table.insert().values(**row))
        self._publish_insert(table, row)
        return dict(row)

    def update(
        self,
        collection: Collection | str,
        record_id: str,
        patch: Mapping[str, Any],
    ) -> Record:
        table = resolve_table(collection)
        values = prepare_patch(table, patch)
        with self._transaction(table.name, record_id) as conn:
            result = conn.execute(update(table).where(table.c.id == record_id).values(**values))
            if result.rowcount == 0:
                raise NotFoundFailure(
                    "Record not found", collection=table.name, record_id=record_id
                )
            row = conn.execute(select(table).where(table.c.id == record_id)).one()
        return dict(row._mapping)

    def update_where(
        self,
        collection: Collection | str,
        record_filter: RecordFilter,
        patch: Mapping[str, Any],
    ) -> int:
        table = resolve_table(collection)
        values = prepare_patch(table, patch)
        where = build_where(table, record_filter)
        with self._transaction(table.name) as conn:
            result = conn.execute(update(table).where(where).values(**values))
        return int(result.rowcount)

    def find_one(self, collection: Collection | str, record_filter: RecordFilter) -> Record | None:
        table = resolve_table(collection)
        where = build_where(table, record_filter)
        with self._transaction(table.name) as conn:
            row = conn.execute(select(table).where(where).limit(1)).first()
        if row is None:
            return None
        return dict(row._mapping)

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
        stmt = select(table).where(build_where(table, record_filter))
        if order_by is not None:
            check_fields(table, {order_by: None})
            column = table.c[order_by]
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(max(0, limit))
        with self._transaction(table.name) as conn:
            rows = conn.execute(stmt).fetchall()
        return [dict(row._mapping) for row in rows]

    def count(self, collection: Collection | str, record_filter: RecordFilter | None = None) -> int:
        table = resolve_table(collection)
        stmt = select(func.count()).select_from(table).where(build_where(table, record_filter))
        with self._transaction(table.name) as conn:
            return int(conn.execute(stmt).scalar_one())

    def remove(self, collection: Collection | str, record_id: str) -> None:
        table = resolve_table(collection)
        with self._transaction(table.name, record_id) as conn:
            result = conn.execute(delete(table).where(table.c.id == record_id))
            if result.rowcount == 0:
                raise NotFoundFailure(
                    "Record not found", collection=table.name, record_id=record_id
                )
