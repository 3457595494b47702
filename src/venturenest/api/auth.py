"""VentureNest API session extraction.

Authentication is performed by the hosted auth backend; the API receives the
signed-in user's id in the X-User-Id header and, optionally, the user's
access token as an Authorization bearer token. The resulting Session is
passed explicitly to every service call.

Fails closed: a missing or blank X-User-Id is rejected with 401.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from venturenest.api.errors import ApiHttpError
from venturenest.session import Session

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
BEARER_PREFIX = "Bearer "


def _extract_bearer_token(request: Request) -> str | None:
    """Return the bearer token from the Authorization header, if any."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(BEARER_PREFIX):
        return None
    token = auth_header[len(BEARER_PREFIX) :].strip()
    return token or None


def require_session(request: Request) -> Session:
    """FastAPI dependency that builds the caller's Session.

    Returns:
        Session for the user named by X-User-Id.

    Raises:
        ApiHttpError: 401 if X-User-Id is missing or blank.
    """
    user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    if not user_id:
        raise ApiHttpError(
            status_code=401,
            code="UNAUTHORIZED",
            message="Missing user identity",
        )

    session = Session(user_id=user_id, access_token=_extract_bearer_token(request))
    request.state.session = session
    return session


RequireSession = Annotated[Session, Depends(require_session)]
