"""
HTTP client factory for the console's REST backend.

Provides a process-wide requests.Session so connection pooling is shared
by every gateway instance.

Environment variables used:
- SOCIETY_CONSOLE_API_URL: Backend base URL
- SOCIETY_CONSOLE_API_TIMEOUT: Request timeout in seconds
"""

import functools
import os

import requests

DEFAULT_API_URL = "https://localhost:5001/api"


def api_url() -> str:
    """Return the configured backend base URL without a trailing slash."""
    return (os.getenv("SOCIETY_CONSOLE_API_URL") or DEFAULT_API_URL).rstrip("/")


def api_timeout() -> float:
    """Return the request timeout in seconds."""
    raw = os.getenv("SOCIETY_CONSOLE_API_TIMEOUT", "30")
    try:
        return float(raw)
    except ValueError:
        return 30.0


@functools.cache
def http_session() -> requests.Session:
    """
    Return the shared requests.Session, creating it on first use.

    JSON is the default Accept type; per-request headers (actor, content
    type) are added by the gateway.
    """
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})
    return session
