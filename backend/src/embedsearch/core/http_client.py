"""Outbound HTTP client for the ranking model provider.

A single pooled ``httpx.AsyncClient`` is created on first use and closed by
the application lifespan. Tests and the widget transport pass their own
clients instead.
"""

import httpx

from .config import Settings, get_settings_instance
from .logging import get_logger

logger = get_logger(__name__)

_shared_client: httpx.AsyncClient | None = None


def build_http_client(settings: Settings | None = None) -> httpx.AsyncClient:
    """Create a client sized for ranking calls: short connect, long read."""
    settings = settings or get_settings_instance()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.ai_search_timeout, connect=min(10.0, settings.ai_search_timeout)),
        limits=httpx.Limits(max_connections=50, max_keepalive_connections=10),
        headers={"User-Agent": f"{settings.app_name}/{settings.version}"},
    )


async def get_http_client() -> httpx.AsyncClient:
    global _shared_client  # noqa: PLW0603
    if _shared_client is None or _shared_client.is_closed:
        _shared_client = build_http_client()
        logger.debug("Created shared HTTP client")
    return _shared_client


async def close_http_client() -> None:
    """Close the shared client; safe to call when it was never created."""
    global _shared_client  # noqa: PLW0603
    if _shared_client is not None:
        await _shared_client.aclose()
        _shared_client = None
        logger.debug("Closed shared HTTP client")
