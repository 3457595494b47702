"""VentureNest error taxonomy.

Every failure raised by the gateway, the object store and the workflow
services derives from VentureNestError and carries an ErrorKind so that
outer layers (the HTTP API, client code) can branch on the kind without
importing backend-specific exception types.

Kinds:
    validation: missing or malformed input (e.g. blank document name)
    not_found: referenced profile/document/request/notification absent
    conflict: uniqueness violated (e.g. second pending access request)
    unavailable: backend unreachable or write rejected
    forbidden: caller is not the owner of the record
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable failure category."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    FORBIDDEN = "forbidden"


class VentureNestError(Exception):
    """Base exception for all VentureNest failures.

    Attributes:
        message: Human-readable error message.
        kind: Failure category.
        collection: Collection involved in the failure (if applicable).
        record_id: Record involved in the failure (if applicable).
    """

    kind: ErrorKind = ErrorKind.UNAVAILABLE

    def __init__(
        self,
        message: str,
        *,
        collection: str | None = None,
        record_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.collection = collection
        self.record_id = record_id

    def __str__(self) -> str:
        parts = [self.message]
        if self.collection:
            parts.append(f"collection={self.collection}")
        if self.record_id:
            parts.append(f"id={self.record_id}")
        return " ".join(parts)


class ValidationFailure(VentureNestError):
    """Raised when a required field is missing or a value is out of range."""

    kind = ErrorKind.VALIDATION


class NotFoundFailure(VentureNestError):
    """Raised when a referenced record does not exist."""

    kind = ErrorKind.NOT_FOUND


class ConflictFailure(VentureNestError):
    """Raised when a write would violate a uniqueness constraint."""

    kind = ErrorKind.CONFLICT


class StorageFailure(VentureNestError):
    """Raised when the backend is unavailable or rejects a write."""

    kind = ErrorKind.UNAVAILABLE

    def __init__(
        self,
        message: str,
        *,
        collection: str | None = None,
        record_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, collection=collection, record_id=record_id)
        self.cause = cause


class PermissionDenied(VentureNestError):
    """Raised when the session user does not own the record being changed."""

    kind = ErrorKind.FORBIDDEN
