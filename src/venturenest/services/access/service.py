"""DocumentAccessService - confidential document access workflow.

Lifecycle of a request:
    request_access() -> pending
    respond(approved=True) -> approved
    respond(approved=False) -> rejected

Invariants:
- Only confidential documents accept access requests
- At most one pending request per (document, investor); a duplicate call
  returns the existing pending request and dispatches nothing
- Only the owner of the document's business profile may respond to its
  requests or list them (PermissionDenied)
- Responding always overwrites status and responded_at (last write wins);
  requested_at is never touched after creation

The document owner is notified of new requests and the investor is notified
of the response, both through NotificationService so preferences apply.
A failed notification write is logged; the request write it follows stands.
"""

from __future__ import annotations

import logging
from typing import Any

from venturenest.errors import (
    ConflictFailure,
    PermissionDenied,
    StorageFailure,
    ValidationFailure,
)
from venturenest.models.document import (
    AccessRequestStatus,
    Document,
    DocumentAccessRequest,
)
from venturenest.models.notification import NotificationType
from venturenest.persistence import Collection, PersistenceGateway
from venturenest.services.notifications import NotificationService
from venturenest.session import Session
from venturenest.timeutil import Clock, to_iso, utc_now

logger = logging.getLogger(__name__)


def _to_request(
    row: dict[str, Any], document: dict[str, Any] | None = None
) -> DocumentAccessRequest:
    data = dict(row)
    if document is not None:
        data["document"] = Document.model_validate(document)
    return DocumentAccessRequest.model_validate(data)


class DocumentAccessService:
    """Service layer for document access requests.

    Usage:
        service = DocumentAccessService(gateway, notifications)
        pending = service.request_access(session, document_id)
        service.respond(owner_session, pending.id, approved=True)
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        notifications: NotificationService | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize DocumentAccessService.

        Args:
            gateway: Persistence gateway for documents and requests.
            notifications: Dispatcher for owner/investor notifications.
            clock: Source of requested_at/responded_at timestamps.
        """
        self._gateway = gateway
        self._notifications = notifications or NotificationService(gateway, clock=clock)
        self._clock = clock

    def request_access(
        self,
        session: Session,
        document_id: str,
        investor_id: str | None = None,
    ) -> DocumentAccessRequest:
        """Request access to a confidential document.

        Args:
            session: Caller session.
            document_id: Document to request.
            investor_id: Requesting investor; defaults to the session user.

        Returns:
            The new pending request, or the existing one for this pair.

        Raises:
            NotFoundFailure: The document does not exist.
            ValidationFailure: The document is not confidential.
            StorageFailure: The write failed.
        """
        investor = investor_id or session.user_id
        document = self._gateway.require(Collection.DOCUMENTS, document_id)
        if not document.get("is_confidential"):
            raise ValidationFailure(
                "Access requests are only accepted for confidential documents",
                collection=Collection.DOCUMENTS.value,
                record_id=document_id,
            )

        existing = self._find_pending(document_id, investor)
        if existing is not None:
            logger.debug(
                "Pending access request %s already exists for document %s, investor %s",
                existing["id"],
                document_id,
                investor,
            )
            return _to_request(existing)

        try:
            row = self._gateway.insert(
                Collection.DOCUMENT_ACCESS_REQUESTS,
                {
                    "document_id": document_id,
                    "investor_id": investor,
                    "status": AccessRequestStatus.PENDING.value,
                    "requested_at": to_iso(self._clock()),
                },
            )
        except ConflictFailure:
            # A concurrent request for the same pair committed first.
            winner = self._find_pending(document_id, investor)
            if winner is None:
                raise
            logger.info(
                "Concurrent access request for document %s, investor %s resolved to %s",
                document_id,
                investor,
                winner["id"],
            )
            return _to_request(winner)

        request = _to_request(row)
        logger.info(
            "Access request %s created for document %s by investor %s",
            request.id,
            document_id,
            investor,
        )
        self._notify_owner(document, request)
        return request

    def respond(
        self,
        session: Session,
        request_id: str,
        approved: bool,
    ) -> DocumentAccessRequest:
        """Approve or reject an access request.

        Raises:
            NotFoundFailure: The request or its document does not exist.
            PermissionDenied: The session user does not own the document.
            StorageFailure: The write failed.
        """
        current = self._gateway.require(Collection.DOCUMENT_ACCESS_REQUESTS, request_id)
        document = self._gateway.require(Collection.DOCUMENTS, current["document_id"])
        self._require_owner(session, document["business_profile_id"])
        previous = AccessRequestStatus(current["status"])
        if previous.is_terminal:
            logger.warning(
                "Access request %s already %s; overwriting with new response from %s",
                request_id,
                previous.value,
                session.user_id,
            )

        status = AccessRequestStatus.APPROVED if approved else AccessRequestStatus.REJECTED
        row = self._gateway.update(
            Collection.DOCUMENT_ACCESS_REQUESTS,
            request_id,
            {"status": status.value, "responded_at": to_iso(self._clock())},
        )
        request = _to_request(row)
        logger.info("Access request %s %s by %s", request_id, status.value, session.user_id)
        self._notify_investor(request)
        return request

    def list_for_owner(
        self,
        session: Session,
        business_profile_id: str,
    ) -> list[DocumentAccessRequest]:
        """Return requests for every document of a profile, newest first.

        Each request carries its document.

        Raises:
            NotFoundFailure: The profile does not exist.
            PermissionDenied: The session user does not own the profile.
        """
        self._require_owner(session, business_profile_id)
        documents = {
            row["id"]: row
            for row in self._gateway.find_many(
                Collection.DOCUMENTS, {"business_profile_id": business_profile_id}
            )
        }
        if not documents:
            return []
        rows = self._gateway.find_many(
            Collection.DOCUMENT_ACCESS_REQUESTS,
            {"document_id": list(documents)},
            order_by="requested_at",
            descending=True,
        )
        return [_to_request(row, documents[row["document_id"]]) for row in rows]

    def list_for_investor(
        self,
        session: Session,
        investor_id: str | None = None,
    ) -> list[DocumentAccessRequest]:
        """Return an investor's requests, newest first, joined with their documents."""
        investor = investor_id or session.user_id
        rows = self._gateway.find_many(
            Collection.DOCUMENT_ACCESS_REQUESTS,
            {"investor_id": investor},
            order_by="requested_at",
            descending=True,
        )
        if not rows:
            return []
        document_ids = sorted({row["document_id"] for row in rows})
        documents = {
            row["id"]: row
            for row in self._gateway.find_many(Collection.DOCUMENTS, {"id": document_ids})
        }
        return [_to_request(row, documents.get(row["document_id"])) for row in rows]

    def has_access(
        self,
        session: Session,
        document_id: str,
        investor_id: str | None = None,
    ) -> bool:
        """Return True if the investor may view the document.

        Non-confidential documents are open to everyone.

        Raises:
            NotFoundFailure: The document does not exist.
        """
        document = self._gateway.require(Collection.DOCUMENTS, document_id)
        if not document.get("is_confidential"):
            return True
        approved = self._gateway.find_one(
            Collection.DOCUMENT_ACCESS_REQUESTS,
            {
                "document_id": document_id,
                "investor_id": investor_id or session.user_id,
                "status": AccessRequestStatus.APPROVED.value,
            },
        )
        return approved is not None

    def _require_owner(self, session: Session, business_profile_id: str) -> None:
        profile = self._gateway.require(Collection.BUSINESS_PROFILES, business_profile_id)
        if profile["user_id"] != session.user_id:
            raise PermissionDenied(
                "Only the business owner may manage access requests",
                collection=Collection.BUSINESS_PROFILES.value,
                record_id=business_profile_id,
            )

    def _find_pending(self, document_id: str, investor_id: str) -> dict[str, Any] | None:
        return self._gateway.find_one(
            Collection.DOCUMENT_ACCESS_REQUESTS,
            {
                "document_id": document_id,
                "investor_id": investor_id,
                "status": AccessRequestStatus.PENDING.value,
            },
        )

    def _notify_owner(self, document: dict[str, Any], request: DocumentAccessRequest) -> None:
        profile = self._gateway.get(Collection.BUSINESS_PROFILES, document["business_profile_id"])
        if profile is None:
            logger.warning(
                "Document %s has no business profile %s; owner not notified",
                document["id"],
                document["business_profile_id"],
            )
            return
        self._dispatch(
            profile["user_id"],
            "New document access request",
            f"An investor has requested access to {document['name']}",
            NotificationType.DOCUMENT_ACCESS_REQUEST,
            request.id,
        )

    def _notify_investor(self, request: DocumentAccessRequest) -> None:
        document = self._gateway.get(Collection.DOCUMENTS, request.document_id)
        name = document["name"] if document else "a document"
        if request.status is AccessRequestStatus.APPROVED:
            title = "Document access approved"
            message = f"Your request to view {name} was approved"
            kind = NotificationType.DOCUMENT_ACCESS_APPROVED
        else:
            title = "Document access rejected"
            message = f"Your request to view {name} was rejected"
            kind = NotificationType.DOCUMENT_ACCESS_REJECTED
        self._dispatch(request.investor_id, title, message, kind, request.document_id)

    def _dispatch(
        self,
        user_id: str,
        title: str,
        message: str,
        kind: NotificationType,
        related_id: str,
    ) -> None:
        try:
            self._notifications.create_notification(
                user_id, title, message, kind, related_id=related_id
            )
        except StorageFailure as e:
            logger.error(
                "Failed to notify %s (%s, related %s): %s", user_id, kind.value, related_id, e
            )
