"""VentureNest API middleware package."""

from venturenest.api.middleware.request_id import RequestIdMiddleware

__all__ = ["RequestIdMiddleware"]
