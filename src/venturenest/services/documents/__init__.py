"""Business document services for VentureNest."""

from venturenest.services.documents.service import (
    DocumentService,
    UpdateDocumentInput,
    UploadDocumentInput,
    file_extension,
)

__all__ = [
    "DocumentService",
    "UpdateDocumentInput",
    "UploadDocumentInput",
    "file_extension",
]
