"""Service wiring for the VentureNest API.

ServiceContainer builds every service on one shared gateway and object store,
so notifications dispatched by the access workflow are visible to the
notification routes and realtime subscribers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from venturenest.persistence import PersistenceGateway, get_gateway
from venturenest.services.access import DocumentAccessService
from venturenest.services.business import BusinessService
from venturenest.services.documents import DocumentService
from venturenest.services.notifications import NotificationService, PreferenceService
from venturenest.storage import ObjectStore, get_object_store
from venturenest.timeutil import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Services sharing one gateway and object store."""

    gateway: PersistenceGateway
    object_store: ObjectStore
    preferences: PreferenceService
    notifications: NotificationService
    access: DocumentAccessService
    documents: DocumentService
    business: BusinessService

    @classmethod
    def build(
        cls,
        gateway: PersistenceGateway | None = None,
        object_store: ObjectStore | None = None,
        clock: Clock = utc_now,
    ) -> ServiceContainer:
        """Wire services, using the configured backends when none are given."""
        gateway = gateway or get_gateway()
        object_store = object_store or get_object_store()
        preferences = PreferenceService(gateway)
        notifications = NotificationService(gateway, preferences, clock=clock)
        logger.info(
            "Service container using gateway=%s object_store=%s",
            gateway.backend_name,
            object_store.backend_name,
        )
        return cls(
            gateway=gateway,
            object_store=object_store,
            preferences=preferences,
            notifications=notifications,
            access=DocumentAccessService(gateway, notifications, clock=clock),
            documents=DocumentService(gateway, object_store, clock=clock),
            business=BusinessService(gateway, object_store, clock=clock),
        )


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the app's service container."""
    container: ServiceContainer = request.app.state.container
    return container


Services = Annotated[ServiceContainer, Depends(get_container)]
