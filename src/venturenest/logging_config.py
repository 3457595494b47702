"""Root logging setup for the VentureNest API entry point.

Library modules only create module-level loggers; configure_logging() is
called once by the process entry point. Every record written through the
root handler carries a request_id attribute: the id of the HTTP request
being served (bound by RequestIdMiddleware), or "-" outside a request.

Environment Variables:
    VENTURENEST_LOG_LEVEL: Root log level name (default: INFO)
"""

from __future__ import annotations

import logging
import os
from contextvars import ContextVar

VENTURENEST_LOG_LEVEL_ENV = "VENTURENEST_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
NO_REQUEST_ID = "-"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s]: %(message)s"

request_id_var: ContextVar[str | None] = ContextVar("venturenest_request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Stamp records with the current request id.

    An explicit extra={"request_id": ...} on the logging call is kept.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get() or NO_REQUEST_ID
        return True


def resolve_log_level(value: str | None = None) -> int:
    """Return the numeric level for a level name, falling back to INFO."""
    name = (value or os.environ.get(VENTURENEST_LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).strip()
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        logging.getLogger(__name__).warning(
            "Unknown log level %r; using %s", name, DEFAULT_LOG_LEVEL
        )
        return logging.INFO
    return level


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger format, level and request id stamping.

    Args:
        level: Level name; read from VENTURENEST_LOG_LEVEL when None.
    """
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    logging.basicConfig(
        format=LOG_FORMAT, level=resolve_log_level(level), handlers=[handler], force=True
    )
