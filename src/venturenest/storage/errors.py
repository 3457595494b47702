"""VentureNest object storage error types.

All storage errors are StorageFailure subclasses, so callers that handle
backend unavailability handle storage faults the same way.
"""

from __future__ import annotations

from venturenest.errors import ErrorKind, StorageFailure


class ObjectStorageError(StorageFailure):
    """Base exception for object storage operations.

    Attributes:
        message: Human-readable error message.
        bucket: Bucket associated with the operation (if applicable).
        key: Object key associated with the operation (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.bucket = bucket
        self.key = key

    def __str__(self) -> str:
        parts = [self.message]
        if self.bucket:
            parts.append(f"bucket={self.bucket}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)


class ObjectNotFoundError(ObjectStorageError):
    """Raised when an object does not exist in the bucket."""

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str = "Object not found",
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)


class PathTraversalError(ObjectStorageError):
    """Raised when an object key or bucket name tries to escape the store.

    Keys like "../x", "/abs", "a\\b" or names with unsafe characters are
    rejected before touching the backend.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Invalid key: path traversal detected",
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)


class StorageBackendError(ObjectStorageError):
    """Raised when the backend itself fails (disk full, permission denied, I/O error)."""

    def __init__(
        self,
        message: str = "Storage backend error",
        *,
        bucket: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key, cause=cause)
