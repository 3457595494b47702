"""Database connectivity and gateway selection for VentureNest.

Environment Variables:
    VENTURENEST_DATABASE_URL: SQLAlchemy URL of the relational backend.
        When unset, the in-memory gateway is used.
    VENTURENEST_DATABASE_CREATE_SCHEMA: Set to "1" to create missing tables
        on startup (default: enabled for SQLite, disabled otherwise).
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from venturenest.persistence.gateway import PersistenceGateway
from venturenest.persistence.memory import InMemoryGateway
from venturenest.persistence.sql import SqlGateway
from venturenest.realtime import RealtimeHub

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

VENTURENEST_DATABASE_URL_ENV = "VENTURENEST_DATABASE_URL"
VENTURENEST_DATABASE_CREATE_SCHEMA_ENV = "VENTURENEST_DATABASE_CREATE_SCHEMA"

_engine: Engine | None = None


class DatabaseConfigError(Exception):
    """Raised when database configuration is missing or invalid."""

    pass


def is_database_configured() -> bool:
    """Check if a database URL is configured via environment."""
    return bool(os.environ.get(VENTURENEST_DATABASE_URL_ENV))


def _normalize_url(url: str) -> str:
    """Map the legacy postgres:// scheme to the one SQLAlchemy expects."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def get_database_url() -> str:
    """Get the database URL from environment.

    Raises:
        DatabaseConfigError: If VENTURENEST_DATABASE_URL is not set.
    """
    url = os.environ.get(VENTURENEST_DATABASE_URL_ENV)
    if not url:
        raise DatabaseConfigError(
            f"Database URL not configured. Set {VENTURENEST_DATABASE_URL_ENV} environment variable."
        )
    return _normalize_url(url)


def create_engine_from_url(url: str) -> Engine:
    """Create an engine, sharing one connection for in-memory SQLite."""
    url = _normalize_url(url)
    if url.startswith("sqlite"):
        if url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_size=5, max_overflow=10, pool_pre_ping=True)


def get_engine() -> Engine:
    """Get or create the process-wide engine.

    Raises:
        DatabaseConfigError: If VENTURENEST_DATABASE_URL is not set.
    """
    global _engine
    if _engine is None:
        _engine = create_engine_from_url(get_database_url())
        logger.info("Created database engine (%s)", _engine.dialect.name)
    return _engine


def reset_engine() -> None:
    """Dispose of the cached engine. For testing only."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def _should_create_schema(engine: Engine) -> bool:
    flag = os.environ.get(VENTURENEST_DATABASE_CREATE_SCHEMA_ENV, "").strip().lower()
    if flag in ("1", "true", "yes"):
        return True
    if flag in ("0", "false", "no"):
        return False
    return engine.dialect.name == "sqlite"


def get_gateway(hub: RealtimeHub | None = None) -> PersistenceGateway:
    """Factory to get the appropriate gateway.

    Returns a SqlGateway if a database URL is configured, otherwise the
    in-memory fallback.
    """
    if is_database_configured():
        engine = get_engine()
        return SqlGateway(engine, hub, create_schema=_should_create_schema(engine))
    logger.info("%s not set; using in-memory gateway", VENTURENEST_DATABASE_URL_ENV)
    return InMemoryGateway(hub)
