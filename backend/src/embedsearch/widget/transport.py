"""HTTP transport used by the widget loader to reach the embedsearch backend."""

from datetime import UTC, datetime
from typing import Any

import httpx

from ..core.config import Settings, get_settings_instance
from ..core.exceptions import TransportError
from ..core.logging import get_logger

logger = get_logger(__name__)


def _origin(url: httpx.URL) -> str:
    host = f"[{url.host}]" if ":" in url.host else url.host
    origin = f"{url.scheme}://{host}"
    if url.port is not None:
        origin += f":{url.port}"
    return origin


def resolve_backend_origin(script_src: str | None, page_url: str) -> str:
    """Return the origin the loader script was served from.

    Relative script URLs are resolved against the page; without a script
    element the page's own origin is used.
    """
    page = httpx.URL(page_url) if page_url else None
    if script_src:
        src = httpx.URL(script_src)
        if not src.is_absolute_url and page is not None:
            src = page.join(script_src)
        if src.is_absolute_url:
            return _origin(src)
    if page is not None and page.is_absolute_url:
        return _origin(page)
    return ""


class WidgetTransport:
    """Posts lookup and query requests to the backend origin."""

    def __init__(self, origin: str, client: httpx.AsyncClient | None = None, settings: Settings | None = None):
        self.origin = origin.rstrip("/")
        self.settings = settings or get_settings_instance()
        self._client = client
        self._owns_client = client is None

    @property
    def lookup_url(self) -> str:
        return f"{self.origin}{self.settings.api_v1_prefix}/{self.settings.plugin_type}"

    @property
    def search_url(self) -> str:
        return f"{self.origin}{self.settings.api_v1_prefix}/search"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.settings.ai_search_timeout + 5.0))
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def lookup(self, uid: str, page_url: str | None = None, user_agent: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"uid": uid, "timestamp": datetime.now(UTC).isoformat()}
        if page_url:
            payload["url"] = page_url[:2048]
        if user_agent:
            payload["userAgent"] = user_agent[:500]
        return await self._post(self.lookup_url, payload)

    async def search(self, uid: str, query: str) -> dict[str, Any]:
        return await self._post(self.search_url, {"uid": uid, "query": query})

    async def _post(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST ``payload`` and return the decoded body.

        Non-2xx responses are returned as the server's ``{"success": false}``
        body when it is JSON, otherwise as a synthesized one.

        Raises:
            TransportError: the backend could not be reached or sent an unreadable success body

        """
        try:
            response = await self._get_client().post(url, json=payload)
        except httpx.RequestError as e:
            logger.error("Widget request failed", extra={"url": url, "error_type": type(e).__name__})
            raise TransportError(details={"url": url, "error_type": type(e).__name__}) from e

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                body.setdefault("success", False)
                return body
            return {"success": False, "error": f"API request failed with status {response.status_code}"}

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError("Invalid response from search service.", details={"url": url}) from e
        if not isinstance(body, dict):
            raise TransportError("Invalid response from search service.", details={"url": url})
        return body
