"""VentureNest filesystem object storage backend.

Objects are stored in a directory structure:
    {base_dir}/{bucket}/{key}              # content
    {base_dir}/{bucket}/{key}.meta.json    # metadata sidecar

Writes go to a temporary file first and are moved into place, so readers
never see a half-written object.

Environment Variables:
    VENTURENEST_OBJECT_STORE_BASE_DIR: Base directory for storage
        (default: tempfile.gettempdir() / venturenest_objects)
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from datetime import UTC, datetime
from pathlib import Path

from venturenest.storage.errors import (
    ObjectNotFoundError,
    PathTraversalError,
    StorageBackendError,
)
from venturenest.storage.models import StoredObject, StoredObjectMetadata
from venturenest.storage.object_store import ObjectStore, compute_sha256, validate_location

logger = logging.getLogger(__name__)

VENTURENEST_OBJECT_STORE_BASE_DIR_ENV = "VENTURENEST_OBJECT_STORE_BASE_DIR"

_METADATA_SUFFIX = ".meta.json"


class FilesystemObjectStore(ObjectStore):
    """Filesystem-based object storage implementation."""

    def __init__(
        self,
        base_dir: str | Path | None = None,
        public_base_url: str | None = None,
    ) -> None:
        """Initialize filesystem storage.

        Args:
            base_dir: Base directory for storage. If None, uses
                VENTURENEST_OBJECT_STORE_BASE_DIR env var or OS temp directory.
            public_base_url: Base URL for public object links.
        """
        super().__init__(public_base_url)
        if base_dir is None:
            base_dir = os.environ.get(VENTURENEST_OBJECT_STORE_BASE_DIR_ENV)

        if base_dir is None:
            base_dir = Path(tempfile.gettempdir()) / "venturenest_objects"
        else:
            base_dir = Path(base_dir)

        self._base_dir = base_dir.resolve()
        logger.debug("FilesystemObjectStore initialized with base_dir=%s", self._base_dir)

    @property
    def backend_name(self) -> str:
        return "filesystem"

    @property
    def base_dir(self) -> Path:
        """Return the base directory path."""
        return self._base_dir

    def _object_path(self, bucket: str, key: str) -> Path:
        """Resolve the content path and make sure it stays under base_dir."""
        validate_location(bucket, key)
        path = (self._base_dir / bucket / key).resolve()
        try:
            path.relative_to(self._base_dir)
        except ValueError as e:
            raise PathTraversalError(
                "Path resolves outside storage base directory",
                bucket=bucket,
                key=key,
            ) from e
        return path

    @staticmethod
    def _meta_path(path: Path) -> Path:
        return path.with_name(path.name + _METADATA_SUFFIX)

    def _write_atomic(self, target: Path, data: bytes, bucket: str, key: str) -> None:
        tmp_file = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp_file.write_bytes(data)
            tmp_file.replace(target)
        except OSError as e:
            tmp_file.unlink(missing_ok=True)
            raise StorageBackendError(
                f"Failed to write object: {e}",
                bucket=bucket,
                key=key,
                cause=e,
            ) from e

    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
    ) -> StoredObjectMetadata:
        path = self._object_path(bucket, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageBackendError(
                f"Failed to create object directory: {e}",
                bucket=bucket,
                key=key,
                cause=e,
            ) from e

        metadata = StoredObjectMetadata(
            bucket=bucket,
            key=key,
            sha256=compute_sha256(data),
            size_bytes=len(data),
            content_type=content_type,
            created_at=datetime.now(UTC),
            public_url=self.public_url(bucket, key),
        )
        self._write_atomic(path, data, bucket, key)
        self._write_atomic(
            self._meta_path(path),
            json.dumps(metadata.to_dict(), indent=2).encode("utf-8"),
            bucket,
            key,
        )
        logger.debug("Stored object: bucket=%s key=%s sha256=%s", bucket, key, metadata.sha256)
        return metadata

    def get(self, bucket: str, key: str) -> StoredObject:
        path = self._object_path(bucket, key)
        if not path.is_file():
            raise ObjectNotFoundError(bucket=bucket, key=key)
        try:
            body = path.read_bytes()
        except OSError as e:
            raise StorageBackendError(
                f"Failed to read object: {e}", bucket=bucket, key=key, cause=e
            ) from e

        metadata: StoredObjectMetadata | None = None
        meta_path = self._meta_path(path)
        if meta_path.is_file():
            try:
                metadata = StoredObjectMetadata.from_dict(
                    json.loads(meta_path.read_text(encoding="utf-8"))
                )
            except (OSError, json.JSONDecodeError, KeyError) as e:
                logger.warning("Failed to read metadata %s: %s", meta_path, e)

        if metadata is None:
            metadata = StoredObjectMetadata(
                bucket=bucket,
                key=key,
                sha256=compute_sha256(body),
                size_bytes=len(body),
                content_type=None,
                created_at=datetime.fromtimestamp(path.stat().st_mtime, UTC),
                public_url=self.public_url(bucket, key),
            )
        return StoredObject(metadata=metadata, body=body)

    def delete(self, bucket: str, key: str) -> None:
        path = self._object_path(bucket, key)
        if not path.is_file():
            raise ObjectNotFoundError(bucket=bucket, key=key)
        try:
            path.unlink()
            self._meta_path(path).unlink(missing_ok=True)
        except OSError as e:
            raise StorageBackendError(
                f"Failed to delete object: {e}", bucket=bucket, key=key, cause=e
            ) from e
        logger.debug("Deleted object: bucket=%s key=%s", bucket, key)

    def exists(self, bucket: str, key: str) -> bool:
        return self._object_path(bucket, key).is_file()
