"""
Ranking model client for embedsearch.

Talks to an OpenAI-compatible ``/chat/completions`` endpoint. Exactly one
request is made per call; there is no retry loop, the caller decides what a
failure means for the search.
"""

import json
from datetime import UTC, datetime
from typing import Any

import httpx

from ..core.config import Settings, get_settings_instance
from ..core.exceptions import UpstreamConfigError, UpstreamFormatError, UpstreamProviderError, UpstreamTimeoutError
from ..core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a precise search engine that returns only JSON arrays. "
    "Follow the instructions exactly and return only valid JSON."
)


class CompletionResult:
    """Text content of a completion plus provider bookkeeping."""

    def __init__(self, content: str, model: str, usage: dict[str, int] | None = None):
        self.content = content
        self.model = model
        self.usage = usage or {}
        self.timestamp = datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "model": self.model,
            "usage": self.usage,
            "timestamp": self.timestamp.isoformat(),
        }


class RankingModelClient:
    """Thin client for the external ranking model."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings | None = None):
        self.http_client = http_client
        self.settings = settings or get_settings_instance()

    @property
    def endpoint(self) -> str:
        return f"{self.settings.openai_base_url.rstrip('/')}/chat/completions"

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.settings.ai_search_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.settings.ai_search_temperature,
            "max_tokens": self.settings.ai_search_max_tokens,
        }

    async def complete(self, prompt: str) -> CompletionResult:
        """Send one completion request and return its text content.

        Raises:
            UpstreamConfigError: no API key is configured (no request is sent)
            UpstreamTimeoutError: the request exceeded the configured timeout
            UpstreamProviderError: the provider answered with an HTTP error or could not be reached
            UpstreamFormatError: the completion envelope has no text content

        """
        if not self.settings.openai_api_key:
            raise UpstreamConfigError()

        headers = {
            "Authorization": f"Bearer {self.settings.openai_api_key}",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(prompt)
        started = datetime.now(UTC)

        try:
            response = await self.http_client.post(
                self.endpoint,
                json=payload,
                headers=headers,
                timeout=self.settings.ai_search_timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Ranking model request timed out: {e}")
            raise UpstreamTimeoutError(details={"timeout": self.settings.ai_search_timeout}) from e
        except httpx.HTTPStatusError as e:
            raise self._provider_error(e) from e
        except httpx.RequestError as e:
            logger.error(f"Ranking model unreachable: {e}")
            raise UpstreamProviderError(
                "Unable to reach AI search provider",
                details={"error_type": type(e).__name__},
            ) from e

        elapsed_ms = round((datetime.now(UTC) - started).total_seconds() * 1000, 2)
        result = self._parse_envelope(response)
        logger.info(
            "Ranking model call completed",
            extra={"model": result.model, "duration_ms": elapsed_ms, "usage": result.usage},
        )
        return result

    def _provider_error(self, e: httpx.HTTPStatusError) -> UpstreamProviderError:
        status_code = e.response.status_code
        provider_message = None
        try:
            body = e.response.json()
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                provider_message = body["error"].get("message")
        except (json.JSONDecodeError, ValueError):
            body = None

        logger.error(
            "Ranking model provider error",
            extra={"status": status_code, "provider_message": provider_message},
        )
        return UpstreamProviderError(
            f"AI search provider returned HTTP {status_code}",
            details={"status": status_code, "provider_message": provider_message},
        )

    def _parse_envelope(self, response: httpx.Response) -> CompletionResult:
        try:
            body = response.json()
            content = body["choices"][0]["message"]["content"]
        except (json.JSONDecodeError, ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamFormatError("AI search returned invalid format") from e

        if not isinstance(content, str):
            raise UpstreamFormatError("AI search returned invalid format")

        return CompletionResult(
            content=content,
            model=body.get("model", self.settings.ai_search_model),
            usage=body.get("usage") or {},
        )
