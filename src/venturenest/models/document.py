"""Document and document access request models.

A Document is a file shared by a business profile. Confidential documents
require an approved DocumentAccessRequest before an investor may view them.

Access request lifecycle:
    pending -> approved
    pending -> rejected
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class DocumentType(str, Enum):
    """Document category chosen by the uploader."""

    PITCH_DECK = "pitch_deck"
    FINANCIAL_STATEMENT = "financial_statement"
    BUSINESS_PLAN = "business_plan"
    MARKET_ANALYSIS = "market_analysis"
    OTHER = "other"


class AccessRequestStatus(str, Enum):
    """State of a document access request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        """Return True once the owner has responded."""
        return self is not AccessRequestStatus.PENDING


class Document(BaseModel):
    """Shared business document.

    Attributes:
        id: Unique identifier.
        business_profile_id: Owning business profile.
        name: Display name.
        file_url: Public URL of the stored object.
        storage_path: Object key inside the storage bucket.
        file_type: Lowercased extension of the uploaded file.
        document_type: Category of the document.
        description: Optional description.
        is_confidential: Whether viewing requires an approved access request.
        version: Always 1; not incremented on update.
        created_at: Record creation timestamp.
        updated_at: Last update timestamp.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    business_profile_id: str
    name: Annotated[str, Field(min_length=1)]
    file_url: str
    storage_path: str | None = None
    file_type: str = ""
    document_type: DocumentType = DocumentType.OTHER
    description: str | None = None
    is_confidential: bool = False
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DocumentAccessRequest(BaseModel):
    """An investor's request to view a confidential document."""

    model_config = ConfigDict(extra="ignore")

    id: str
    document_id: str
    investor_id: str
    status: AccessRequestStatus = AccessRequestStatus.PENDING
    requested_at: datetime
    responded_at: datetime | None = None
    document: Document | None = None
