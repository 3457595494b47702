"""Document access request routes for the VentureNest API.

- POST /v1/documents/{document_id}/access-requests (requestDocumentAccess)
- POST /v1/access-requests/{request_id}/respond (respondToAccessRequest)
- GET /v1/business-profiles/{profile_id}/access-requests (listOwnerAccessRequests)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict

from venturenest.api.auth import RequireSession
from venturenest.api.container import Services
from venturenest.models.document import DocumentAccessRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["Access Requests"])


class RespondRequest(BaseModel):
    """Request body for POST /v1/access-requests/{request_id}/respond."""

    model_config = ConfigDict(extra="forbid")

    approved: bool


class AccessRequestList(BaseModel):
    """List of access requests."""

    items: list[DocumentAccessRequest]


@router.post(
    "/documents/{document_id}/access-requests",
    response_model=DocumentAccessRequest,
    status_code=201,
)
def request_document_access(
    document_id: str,
    session: RequireSession,
    services: Services,
) -> DocumentAccessRequest:
    """Request access to a confidential document as the session user.

    Repeating the call while the request is pending returns the same request.
    """
    return services.access.request_access(session, document_id)


@router.post(
    "/access-requests/{request_id}/respond",
    response_model=DocumentAccessRequest,
)
def respond_to_access_request(
    request_id: str,
    body: RespondRequest,
    session: RequireSession,
    services: Services,
) -> DocumentAccessRequest:
    """Approve or reject an access request."""
    return services.access.respond(session, request_id, body.approved)


@router.get(
    "/business-profiles/{profile_id}/access-requests",
    response_model=AccessRequestList,
)
def list_owner_access_requests(
    profile_id: str,
    session: RequireSession,
    services: Services,
) -> AccessRequestList:
    """List access requests for a profile's documents, newest first."""
    return AccessRequestList(items=services.access.list_for_owner(session, profile_id))
