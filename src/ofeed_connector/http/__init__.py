"""HTTP transport helpers."""

from ofeed_connector.http.client import (
    TracingAdapter,
    basic_authorization,
    build_timeout,
    create_session,
)
from ofeed_connector.http.ping import ping
from ofeed_connector.http.status_codes import describe

__all__ = [
    "TracingAdapter",
    "basic_authorization",
    "build_timeout",
    "create_session",
    "describe",
    "ping",
]
