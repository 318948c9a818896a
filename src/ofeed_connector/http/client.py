"""
HTTP transport for the results relay.

Handles:
- Session creation with a fixed User-Agent
- Per-call connect/read/write/total timeouts
- Wire tracing of every request and response
- Basic authorization header encoding
"""

import base64
import logging
import time
from typing import Callable, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Timeout

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT_SEC = 10.0
DEFAULT_READ_TIMEOUT_SEC = 10.0
DEFAULT_WRITE_TIMEOUT_SEC = 10.0
DEFAULT_CALL_TIMEOUT_SEC: Optional[float] = None  # Unbounded

WireTrace = Callable[[str], None]


def basic_authorization(event_id: str, password: str) -> str:
    """
    Build a Basic authorization header value.

    Args:
        event_id: OFeed event id (user name)
        password: OFeed event password

    Returns:
        "Basic " followed by base64("event_id:password")
    """
    credentials = f"{event_id}:{password}".encode("utf-8")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


def _timeout_seconds(value_ms: Optional[int], default_sec: Optional[float]) -> Optional[float]:
    """Negative or unset means default, zero means no timeout."""
    if value_ms is None or value_ms < 0:
        return default_sec
    if value_ms == 0:
        return None
    return value_ms / 1000.0


def build_timeout(
    connect_ms: Optional[int] = -1,
    read_ms: Optional[int] = -1,
    write_ms: Optional[int] = -1,
    call_ms: Optional[int] = -1,
) -> Timeout:
    """
    Map relay timeouts (ms) onto a urllib3 Timeout.

    urllib3 keeps the connect timeout on the socket while the request is
    written, so the write timeout widens the connect phase. The call
    timeout bounds connect and read together.
    """
    connect = _timeout_seconds(connect_ms, DEFAULT_CONNECT_TIMEOUT_SEC)
    read = _timeout_seconds(read_ms, DEFAULT_READ_TIMEOUT_SEC)
    write = _timeout_seconds(write_ms, DEFAULT_WRITE_TIMEOUT_SEC)
    total = _timeout_seconds(call_ms, DEFAULT_CALL_TIMEOUT_SEC)

    if connect is None or write is None:
        connect_phase = None
    else:
        connect_phase = max(connect, write)

    return Timeout(connect=connect_phase, read=read, total=total)


def _body_size(body) -> str:
    if body is None:
        return "0-byte body"
    if isinstance(body, (bytes, str)):
        return f"{len(body)}-byte body"
    return "unknown-length body"


class TracingAdapter(HTTPAdapter):
    """
    Transport adapter that traces each exchange at a basic level.

    Lines look like:
        --> POST https://host/path (1234-byte body)
        <-- 200 OK https://host/path (87ms, 15-byte body)
        <-- HTTP FAILED: <reason>
    """

    def __init__(
        self,
        trace: Optional[WireTrace] = None,
        timeout: Optional[Timeout] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._trace = trace
        self._timeout = timeout if timeout is not None else build_timeout()

    @property
    def timeout(self) -> Timeout:
        return self._timeout

    def _emit(self, line: str) -> None:
        if self._trace is None:
            return
        try:
            self._trace(line)
        except Exception as e:
            logger.error(f"Wire trace error: {e}")

    def send(self, request, **kwargs):
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = self._timeout

        if request.body is None:
            self._emit(f"--> {request.method} {request.url}")
        else:
            self._emit(f"--> {request.method} {request.url} ({_body_size(request.body)})")

        started = time.monotonic()
        try:
            response = super().send(request, **kwargs)
        except Exception as e:
            self._emit(f"<-- HTTP FAILED: {e}")
            raise

        elapsed_ms = int((time.monotonic() - started) * 1000)
        length = response.headers.get("Content-Length")
        size = f"{length}-byte body" if length is not None else "unknown-length body"
        reason = f" {response.reason}" if response.reason else ""
        self._emit(
            f"<-- {response.status_code}{reason} {request.url} ({elapsed_ms}ms, {size})"
        )
        return response


def create_session(
    user_agent: str,
    timeout: Optional[Timeout] = None,
    trace: Optional[WireTrace] = None,
) -> requests.Session:
    """
    Create an HTTP session for the relay.

    Args:
        user_agent: User-Agent header sent with every request
        timeout: Timeouts applied to every call (defaults if None)
        trace: Callback receiving one line per request/response

    Returns:
        Configured requests.Session
    """
    session = requests.Session()
    session.headers["User-Agent"] = user_agent

    adapter = TracingAdapter(trace=trace, timeout=timeout)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    return session


def describe_transport_error(error: Exception) -> str:
    """Human-readable reason for a transport-level failure."""
    message = str(error).strip()
    return message if message else "I/O error."
