"""VentureNest FastAPI application factory.

This module provides the create_app() factory for bootstrapping the API.
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from venturenest.api.container import ServiceContainer
from venturenest.api.errors import (
    ApiHttpError,
    api_http_error_handler,
    generic_exception_handler,
    http_exception_handler,
    request_validation_error_handler,
    venturenest_error_handler,
)
from venturenest.api.middleware.request_id import RequestIdMiddleware
from venturenest.api.routes.access_requests import router as access_requests_router
from venturenest.api.routes.health import VENTURENEST_API_VERSION
from venturenest.api.routes.health import router as health_router
from venturenest.api.routes.notifications import router as notifications_router
from venturenest.api.routes.preferences import router as preferences_router
from venturenest.errors import VentureNestError


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create and configure the VentureNest FastAPI application.

    This factory:
    - Creates a FastAPI app with VentureNest metadata
    - Attaches the service container to app.state
    - Registers the request ID middleware and the exception handlers
    - Mounts the health router (no session required)
    - Mounts the /v1 routers (X-User-Id required)

    Args:
        container: Optional ServiceContainer for testing. If None, one is built
            from the configured gateway and object store.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="VentureNest API",
        description="Document access workflow and notification dispatch",
        version=VENTURENEST_API_VERSION,
    )

    app.state.container = container or ServiceContainer.build()

    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(ApiHttpError, api_http_error_handler)
    app.add_exception_handler(VentureNestError, venturenest_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health_router)
    app.include_router(access_requests_router)
    app.include_router(notifications_router)
    app.include_router(preferences_router)

    return app
