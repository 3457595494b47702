"""VentureNest object storage interface definition.

Provides the ObjectStore base class all storage backends implement, plus the
key validation and public-URL helpers they share.

Environment Variables:
    VENTURENEST_PUBLIC_BASE_URL: Base URL public object links are built from
        (default: http://localhost:8000)
"""

from __future__ import annotations

import hashlib
import os
import re
from abc import ABC, abstractmethod

from venturenest.storage.errors import PathTraversalError
from venturenest.storage.models import StoredObject, StoredObjectMetadata

VENTURENEST_PUBLIC_BASE_URL_ENV = "VENTURENEST_PUBLIC_BASE_URL"
DEFAULT_PUBLIC_BASE_URL = "http://localhost:8000"
PUBLIC_OBJECT_PREFIX = "storage/v1/object/public"

_BUCKET_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._\-]{1,62}$")
_SAFE_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9_\-./]+$")


def _is_path_traversal(key: str) -> bool:
    """Check if a key contains path traversal sequences or unsafe characters."""
    if not key or "\x00" in key or "\\" in key:
        return True
    if key.startswith("/") or key.startswith("~"):
        return True
    if len(key) >= 2 and key[1] == ":":
        return True
    if any(segment in ("", ".", "..") for segment in key.split("/")):
        return True
    return not _SAFE_KEY_PATTERN.match(key)


def validate_location(bucket: str, key: str) -> None:
    """Validate bucket name and object key.

    Raises:
        PathTraversalError: If either is unsafe.
    """
    if not _BUCKET_PATTERN.match(bucket):
        raise PathTraversalError("Invalid bucket name", bucket=bucket, key=key)
    if _is_path_traversal(key):
        raise PathTraversalError(
            "Invalid key: path traversal or unsafe characters detected",
            bucket=bucket,
            key=key,
        )


def compute_sha256(data: bytes) -> str:
    """Compute SHA256 hash of data and return as hex string."""
    return hashlib.sha256(data).hexdigest()


class ObjectStore(ABC):
    """Abstract base class for object storage backends.

    Implementations:
    - InMemoryObjectStore: process-local storage (dev/test)
    - FilesystemObjectStore: local filesystem
    """

    def __init__(self, public_base_url: str | None = None) -> None:
        if public_base_url is None:
            public_base_url = os.environ.get(
                VENTURENEST_PUBLIC_BASE_URL_ENV, DEFAULT_PUBLIC_BASE_URL
            )
        self._public_base_url = public_base_url.rstrip("/")

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for logging."""
        ...

    @abstractmethod
    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        *,
        content_type: str | None = None,
    ) -> StoredObjectMetadata:
        """Store an object, replacing any existing object at the same key.

        Raises:
            PathTraversalError: If bucket or key is unsafe.
            StorageBackendError: If the backend cannot complete the write.
        """
        ...

    @abstractmethod
    def get(self, bucket: str, key: str) -> StoredObject:
        """Retrieve an object.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            PathTraversalError: If bucket or key is unsafe.
            StorageBackendError: If the backend cannot complete the read.
        """
        ...

    @abstractmethod
    def delete(self, bucket: str, key: str) -> None:
        """Delete an object.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            PathTraversalError: If bucket or key is unsafe.
            StorageBackendError: If the backend cannot complete the deletion.
        """
        ...

    @abstractmethod
    def exists(self, bucket: str, key: str) -> bool:
        """Return True if an object is stored at bucket/key."""
        ...

    def public_url(self, bucket: str, key: str) -> str:
        """Return the public download URL for bucket/key."""
        validate_location(bucket, key)
        return f"{self._public_base_url}/{PUBLIC_OBJECT_PREFIX}/{bucket}/{key}"

    def key_from_url(self, bucket: str, url: str) -> str | None:
        """Recover the object key from a public URL, or None if it is not one of ours."""
        prefix = f"{self._public_base_url}/{PUBLIC_OBJECT_PREFIX}/{bucket}/"
        if not url.startswith(prefix):
            return None
        key = url[len(prefix) :].split("?", 1)[0]
        if _is_path_traversal(key):
            return None
        return key
