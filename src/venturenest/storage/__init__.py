"""VentureNest Object Storage Abstraction.

Provides bucket/key object storage for business logos and shared documents.

Backends:
- InMemoryObjectStore: process-local (dev/test)
- FilesystemObjectStore: local filesystem

Environment Variables:
    VENTURENEST_OBJECT_STORE_BACKEND: "memory" or "filesystem" (default: "memory")
    VENTURENEST_OBJECT_STORE_BASE_DIR: Base directory for filesystem backend
    VENTURENEST_STORAGE_BUCKET: Bucket for business assets (default: "business-assets")
"""

from __future__ import annotations

import os

from venturenest.storage.errors import (
    ObjectNotFoundError,
    ObjectStorageError,
    PathTraversalError,
    StorageBackendError,
)
from venturenest.storage.filesystem_store import FilesystemObjectStore
from venturenest.storage.memory_store import InMemoryObjectStore
from venturenest.storage.models import StoredObject, StoredObjectMetadata
from venturenest.storage.object_store import ObjectStore

VENTURENEST_OBJECT_STORE_BACKEND_ENV = "VENTURENEST_OBJECT_STORE_BACKEND"
VENTURENEST_STORAGE_BUCKET_ENV = "VENTURENEST_STORAGE_BUCKET"
DEFAULT_BUCKET = "business-assets"


def get_storage_bucket() -> str:
    """Return the bucket business assets are stored in."""
    return os.environ.get(VENTURENEST_STORAGE_BUCKET_ENV, "").strip() or DEFAULT_BUCKET


def get_object_store() -> ObjectStore:
    """Factory to get the configured object store backend.

    Raises:
        ValueError: If VENTURENEST_OBJECT_STORE_BACKEND names an unknown backend.
    """
    backend = os.environ.get(VENTURENEST_OBJECT_STORE_BACKEND_ENV, "memory").strip().lower()
    if backend == "memory":
        return InMemoryObjectStore()
    if backend == "filesystem":
        return FilesystemObjectStore()
    raise ValueError(f"Unknown object store backend: {backend!r}")


__all__ = [
    "DEFAULT_BUCKET",
    "VENTURENEST_OBJECT_STORE_BACKEND_ENV",
    "VENTURENEST_STORAGE_BUCKET_ENV",
    "FilesystemObjectStore",
    "InMemoryObjectStore",
    "ObjectNotFoundError",
    "ObjectStorageError",
    "ObjectStore",
    "PathTraversalError",
    "StorageBackendError",
    "StoredObject",
    "StoredObjectMetadata",
    "get_object_store",
    "get_storage_bucket",
]
