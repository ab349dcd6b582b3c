"""Shared HTTP client handling."""

import httpx

from clean_code_guard.config import get_timeouts, get_verify_ssl

USER_AGENT = "clean-code-guard"


def create_async_http_client(
    token: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an HTTP client for one assessment run.

    Each run owns its client so concurrent runs never share connection state.
    Redirects are followed because artifact and archive downloads are served
    from short-lived storage URLs.

    Args:
        token: Optional forge credential sent as a bearer token.
        transport: Optional transport override (used by tests).
    """
    timeouts = get_timeouts()
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": USER_AGENT,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"

    return httpx.AsyncClient(
        verify=get_verify_ssl(),
        timeout=httpx.Timeout(timeouts.snapshot, connect=timeouts.connect),
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
            keepalive_expiry=30.0,
        ),
        headers=headers,
        follow_redirects=True,
        transport=transport,
    )
