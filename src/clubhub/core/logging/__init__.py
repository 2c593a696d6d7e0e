"""Structured logging setup and request tracking middleware."""

from clubhub.core.logging.middleware import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    get_client_ip,
)
from clubhub.core.logging.setup import configure_logging


__all__ = [
    "REQUEST_ID_HEADER",
    "RequestIdMiddleware",
    "RequestLoggingMiddleware",
    "configure_logging",
    "get_client_ip",
]
