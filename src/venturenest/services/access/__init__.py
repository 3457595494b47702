"""Document access workflow for VentureNest."""

from venturenest.services.access.service import DocumentAccessService

__all__ = ["DocumentAccessService"]
