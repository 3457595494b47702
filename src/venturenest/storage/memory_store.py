"""In-memory object storage backend for development and tests."""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime

from venturenest.storage.errors import ObjectNotFoundError
from venturenest.storage.models import StoredObject, StoredObjectMetadata
from venturenest.storage.object_store import ObjectStore, compute_sha256, validate_location

logger = logging.getLogger(__name__)


class InMemoryObjectStore(ObjectStore):
    """Object store keeping bodies in a process-local dict."""

    def __init__(self, public_base_url: str | None = None) -> None:
        super().__init__(public_base_url)
        self._lock = threading.Lock()
        self._objects: dict[tuple[str, str], StoredObject] = {}

    @property
    def backend_name(self) -> str:
        return "memory"

    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
    ) -> StoredObjectMetadata:
        validate_location(bucket, key)
        metadata = StoredObjectMetadata(
            bucket=bucket,
            key=key,
            sha256=compute_sha256(data),
            size_bytes=len(data),
            content_type=content_type,
            created_at=datetime.now(UTC),
            public_url=self.public_url(bucket, key),
        )
        with self._lock:
            self._objects[(bucket, key)] = StoredObject(metadata=metadata, body=bytes(data))
        logger.debug("Stored object: bucket=%s key=%s size=%d", bucket, key, len(data))
        return metadata

    def get(self, bucket: str, key: str) -> StoredObject:
        validate_location(bucket, key)
        with self._lock:
            stored = self._objects.get((bucket, key))
        if stored is None:
            raise ObjectNotFoundError(bucket=bucket, key=key)
        return stored

    def delete(self, bucket: str, key: str) -> None:
        validate_location(bucket, key)
        with self._lock:
            if (bucket, key) not in self._objects:
                raise ObjectNotFoundError(bucket=bucket, key=key)
            del self._objects[(bucket, key)]
        logger.debug("Deleted object: bucket=%s key=%s", bucket, key)

    def exists(self, bucket: str, key: str) -> bool:
        validate_location(bucket, key)
        with self._lock:
            return (bucket, key) in self._objects
