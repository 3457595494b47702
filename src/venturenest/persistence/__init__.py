"""Persistence gateway for VentureNest.

Provides typed CRUD over the VentureNest collections with a SQLAlchemy
backend and an in-memory fallback for development/testing.
"""

from venturenest.persistence.db import (
    DatabaseConfigError,
    create_engine_from_url,
    get_gateway,
    is_database_configured,
)
from venturenest.persistence.gateway import PersistenceGateway, Record
from venturenest.persistence.memory import InMemoryGateway
from venturenest.persistence.schema import UNIQUE_KEYS, Collection, UniqueKey, metadata
from venturenest.persistence.sql import SqlGateway

__all__ = [
    "Collection",
    "DatabaseConfigError",
    "InMemoryGateway",
    "PersistenceGateway",
    "Record",
    "SqlGateway",
    "UNIQUE_KEYS",
    "UniqueKey",
    "create_engine_from_url",
    "get_gateway",
    "is_database_configured",
    "metadata",
]
