"""
Unit tests for RankingModelClient.

Uses httpx.MockTransport to stand in for the OpenAI-compatible provider.
"""

import json

import httpx
import pytest

from embedsearch.core.exceptions import (
    UpstreamConfigError,
    UpstreamFormatError,
    UpstreamProviderError,
    UpstreamTimeoutError,
)
from embedsearch.llm.client import SYSTEM_PROMPT, RankingModelClient


def _completion(content, model: str = "gpt-3.5-turbo") -> dict:
    return {
        "id": "chatcmpl-1",
        "model": model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestRankingModelClient:
    """Tests for RankingModelClient.complete."""

    @pytest.mark.asyncio
    async def test_sends_one_request_with_expected_payload(self, test_settings) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=_completion("[]"))

        async with _client(handler) as http_client:
            result = await RankingModelClient(http_client, test_settings).complete("rank these")

        assert result.content == "[]"
        assert result.usage["total_tokens"] == 15
        assert len(requests) == 1

        request = requests[0]
        assert str(request.url) == "https://llm.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test-key"
        payload = json.loads(request.content)
        assert payload["model"] == "gpt-3.5-turbo"
        assert payload["temperature"] == 0.1
        assert payload["max_tokens"] == 2000
        assert payload["messages"] == [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "rank these"},
        ]

    @pytest.mark.asyncio
    async def test_missing_key_sends_nothing(self, make_settings) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=_completion("[]"))

        async with _client(handler) as http_client:
            with pytest.raises(UpstreamConfigError):
                await RankingModelClient(http_client, make_settings(openai_api_key=None)).complete("x")

        assert calls == []

    @pytest.mark.asyncio
    async def test_http_error_maps_to_provider_error(self, test_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"message": "Invalid API key", "type": "invalid_request_error"}})

        async with _client(handler) as http_client:
            with pytest.raises(UpstreamProviderError) as exc_info:
                await RankingModelClient(http_client, test_settings).complete("x")

        assert exc_info.value.status_code == 502
        assert exc_info.value.details == {"status": 401, "provider_message": "Invalid API key"}

    @pytest.mark.asyncio
    async def test_timeout_maps_to_timeout_error(self, test_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as http_client:
            with pytest.raises(UpstreamTimeoutError):
                await RankingModelClient(http_client, test_settings).complete("x")

    @pytest.mark.asyncio
    async def test_connection_failure_maps_to_provider_error(self, test_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as http_client:
            with pytest.raises(UpstreamProviderError):
                await RankingModelClient(http_client, test_settings).complete("x")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"choices": []}, {"choices": [{"message": {}}]}, _completion(None), ["not", "an", "object"]],
    )
    async def test_malformed_envelope_is_format_error(self, body, test_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=body)

        async with _client(handler) as http_client:
            with pytest.raises(UpstreamFormatError):
                await RankingModelClient(http_client, test_settings).complete("x")
