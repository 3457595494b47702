"""Request ID middleware for the VentureNest API.

Binds one id per HTTP request so access request, notification and storage
logs written while serving it can be correlated with the X-Request-Id
response header and the error envelope.
"""

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from venturenest.api.error_model import REQUEST_ID_HEADER
from venturenest.logging_config import request_id_var

logger = logging.getLogger(__name__)

MAX_REQUEST_ID_LENGTH = 128


def resolve_request_id(incoming: str | None) -> str:
    """Return the caller's id when usable, else a fresh uuid4.

    Blank ids and ids longer than MAX_REQUEST_ID_LENGTH are replaced.
    """
    if incoming:
        candidate = incoming.strip()
        if candidate and len(candidate) <= MAX_REQUEST_ID_LENGTH:
            return candidate
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that binds a request ID for the duration of a request.

    The id is stored on request.state.request_id for error rendering, bound
    to request_id_var for log records, and echoed in the X-Request-Id
    response header.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process the request with its id bound."""
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
            logger.info(
                "%s %s -> %d (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
