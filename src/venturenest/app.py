"""VentureNest ASGI entry point.

Run with: uvicorn venturenest.app:app
"""

from venturenest.api.main import create_app
from venturenest.logging_config import configure_logging

configure_logging()

app = create_app()
