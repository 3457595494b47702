"""DocumentService - business document upload and lifecycle.

Uploaded files are written to the object store under
documents/{profile_id}-{epoch_ms}.{ext}; the record keeps both the public
URL and the object key. Storage and record writes are not transactional:
- a failed record insert removes the just-uploaded object (best effort)
- deleting a document removes its object best effort; a storage failure is
  logged and never blocks the record deletion
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from venturenest.errors import VentureNestError
from venturenest.models.document import Document, DocumentType
from venturenest.persistence import Collection, PersistenceGateway
from venturenest.storage import ObjectStore, ObjectStorageError, get_storage_bucket
from venturenest.timeutil import Clock, epoch_millis, to_iso, utc_now
from venturenest.validation import parse_input

logger = logging.getLogger(__name__)

DOCUMENTS_PREFIX = "documents"
DEFAULT_EXTENSION = "bin"


def file_extension(filename: str) -> str:
    """Return the lowercased extension of a file name, or "" if it has none."""
    base = filename.rsplit("/", 1)[-1]
    if "." not in base.strip("."):
        return ""
    return base.rsplit(".", 1)[-1].lower()


def _not_blank(v: str | None) -> str | None:
    if v is not None and not v.strip():
        raise ValueError("must not be blank")
    return v


class UploadDocumentInput(BaseModel):
    """Input model for uploading a document."""

    name: str = Field(..., min_length=1, description="Display name")
    filename: str = Field(..., min_length=1, description="Original file name")
    content: bytes = Field(..., repr=False, description="File body")
    content_type: str | None = Field(default=None, description="MIME type")
    document_type: DocumentType = Field(default=DocumentType.OTHER)
    description: str | None = Field(default=None)
    is_confidential: bool = Field(default=False)

    @field_validator("name", "filename")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only values."""
        _not_blank(v)
        return v


class UpdateDocumentInput(BaseModel):
    """Input model for updating document metadata. The file itself is immutable."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1)
    document_type: DocumentType | None = None
    description: str | None = None
    is_confidential: bool | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Reject whitespace-only names."""
        return _not_blank(v)


class DocumentService:
    """Service layer for shared business documents.

    Usage:
        service = DocumentService(gateway, object_store)
        doc = service.upload_document(profile_id, UploadDocumentInput(...))
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        object_store: ObjectStore,
        bucket: str | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._gateway = gateway
        self._store = object_store
        self._bucket = bucket or get_storage_bucket()
        self._clock = clock

    def upload_document(
        self,
        business_profile_id: str,
        data: UploadDocumentInput | Mapping[str, Any],
    ) -> Document:
        """Store a file and create its document record (version 1).

        Raises:
            ValidationFailure: Invalid input.
            NotFoundFailure: The business profile does not exist.
            StorageFailure: The upload or the record insert failed.
        """
        upload = parse_input(UploadDocumentInput, data, collection=Collection.DOCUMENTS.value)
        self._gateway.require(Collection.BUSINESS_PROFILES, business_profile_id)

        ext = file_extension(upload.filename)
        now = self._clock()
        stem = f"{business_profile_id}-{epoch_millis(now)}"
        key = f"{DOCUMENTS_PREFIX}/{stem}.{ext or DEFAULT_EXTENSION}"
        stored = self._store.put(
            self._bucket, key, upload.content, content_type=upload.content_type
        )

        try:
            row = self._gateway.insert(
                Collection.DOCUMENTS,
                {
                    "business_profile_id": business_profile_id,
                    "name": upload.name,
                    "file_url": stored.public_url,
                    "storage_path": key,
                    "file_type": ext,
                    "document_type": upload.document_type.value,
                    "description": upload.description,
                    "is_confidential": upload.is_confidential,
                    "version": 1,
                    "created_at": to_iso(now),
                },
            )
        except VentureNestError:
            self._discard_object(key)
            raise

        logger.info(
            "Uploaded document %s for profile %s (%d bytes, confidential=%s)",
            row["id"],
            business_profile_id,
            stored.size_bytes,
            upload.is_confidential,
        )
        return Document.model_validate(row)

    def list_documents(self, business_profile_id: str) -> list[Document]:
        """Return a profile's documents, newest first."""
        rows = self._gateway.find_many(
            Collection.DOCUMENTS,
            {"business_profile_id": business_profile_id},
            order_by="created_at",
            descending=True,
        )
        return [Document.model_validate(row) for row in rows]

    def get_document(self, document_id: str) -> Document:
        """Return a document.

        Raises:
            NotFoundFailure: The document does not exist.
        """
        return Document.model_validate(self._gateway.require(Collection.DOCUMENTS, document_id))

    def update_document(
        self,
        document_id: str,
        patch: UpdateDocumentInput | Mapping[str, Any],
    ) -> Document:
        """Update name, category, description or confidentiality.

        The version is left unchanged.

        Raises:
            ValidationFailure: Invalid or unsupported fields.
            NotFoundFailure: The document does not exist.
        """
        update = parse_input(UpdateDocumentInput, patch, collection=Collection.DOCUMENTS.value)
        changes = {
            field: value
            for field, value in update.model_dump(exclude_unset=True, mode="json").items()
            if value is not None or field == "description"
        }
        if not changes:
            return self.get_document(document_id)

        row = self._gateway.update(Collection.DOCUMENTS, document_id, changes)
        logger.info("Updated document %s: %s", document_id, sorted(changes))
        return Document.model_validate(row)

    def delete_document(self, document_id: str) -> None:
        """Delete a document, its access requests and (best effort) its object.

        Raises:
            NotFoundFailure: The document does not exist.
        """
        row = self._gateway.require(Collection.DOCUMENTS, document_id)

        key = row.get("storage_path") or self._store.key_from_url(self._bucket, row["file_url"])
        if key:
            self._discard_object(key)
        else:
            logger.warning(
                "Document %s has no resolvable storage key; object left in place", document_id
            )

        requests = self._gateway.find_many(
            Collection.DOCUMENT_ACCESS_REQUESTS, {"document_id": document_id}
        )
        for request in requests:
            self._gateway.remove(Collection.DOCUMENT_ACCESS_REQUESTS, request["id"])

        self._gateway.remove(Collection.DOCUMENTS, document_id)
        logger.info(
            "Deleted document %s and %d access request(s)", document_id, len(requests)
        )

    def _discard_object(self, key: str) -> None:
        try:
            self._store.delete(self._bucket, key)
        except ObjectStorageError as e:
            logger.warning("Failed to remove stored object %s/%s: %s", self._bucket, key, e)
