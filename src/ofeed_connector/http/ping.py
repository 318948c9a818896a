"""
Reachability check for the local results source.

Used before starting the relay to tell "source not running" apart from
"relay stopped".
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

PING_TIMEOUT_SEC = 5


def ping(url: str, user_agent: str, session: Optional[requests.Session] = None) -> bool:
    """
    Send a GET to the given URL.

    Args:
        url: URL to probe, e.g. http://localhost:8080
        user_agent: User-Agent header
        session: Optional session to use

    Returns:
        True if the server answered with a success status
    """
    http = session or requests
    try:
        response = http.get(
            url,
            headers={"User-Agent": user_agent},
            timeout=PING_TIMEOUT_SEC,
        )
    except requests.RequestException as e:
        logger.debug(f"Ping {url} failed: {e}")
        return False

    try:
        return response.ok
    finally:
        response.close()
