"""Health check endpoint for the VentureNest API."""

from fastapi import APIRouter
from pydantic import BaseModel

from venturenest.api.container import Services
from venturenest.timeutil import utc_now_iso

router = APIRouter(tags=["Health"])

VENTURENEST_API_VERSION = "1.0"


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    time: str
    version: str
    backend: str


@router.get("/health", response_model=HealthResponse)
def get_health(services: Services) -> HealthResponse:
    """Health check endpoint. No session required.

    Returns:
        HealthResponse with status "ok", current time, version and gateway backend.
    """
    return HealthResponse(
        status="ok",
        time=utc_now_iso(),
        version=VENTURENEST_API_VERSION,
        backend=services.gateway.backend_name,
    )
