"""
Unit tests for SearchOrchestrator.

Includes the end-to-end scenarios for the widget protocol: registered
lookup, unknown uid, AI-ranked query, degraded lookup and malformed model
output.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from embedsearch.core.exceptions import (
    PluginNotFoundError,
    UpstreamConfigError,
    UpstreamFormatError,
    UpstreamProviderError,
    ValidationError,
)
from embedsearch.llm.client import CompletionResult
from embedsearch.schemas.plugin import PluginRecordCreate, PluginResolution, ResolutionSource
from embedsearch.schemas.search import RankedResult, SearchType
from embedsearch.services.ai_search_service import AISearchService
from embedsearch.services.plugin_registry_service import PluginRegistryService
from embedsearch.services.plugin_resolver import AllowlistTier, PluginResolver, RegistryTier
from embedsearch.services.search_orchestrator import (
    DEGRADED_LOOKUP_MESSAGE,
    LOOKUP_MESSAGE,
    SearchOrchestrator,
)

ALLOWLIST = ["test-uid-001", "test-uid-002", "test-uid-003", "user-123", "search-456"]
CME_SETTINGS = {
    "theme": "default",
    "placeholder": "Search in CME program",
    "title": "AI Search",
    "submitText": "Search",
}


def _resolver_with(resolution: PluginResolution | None = None, error: Exception | None = None) -> MagicMock:
    resolver = MagicMock(spec=PluginResolver)
    resolver.lookup_settings = AsyncMock(return_value=resolution, side_effect=error)
    resolver.lookup_corpus = AsyncMock(return_value=resolution, side_effect=error)
    return resolver


def _search_service(results=None, error: Exception | None = None) -> MagicMock:
    service = MagicMock(spec=AISearchService)
    service.search = AsyncMock(return_value=results or [], side_effect=error)
    return service


def _unreachable_registry():
    session = MagicMock()
    session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, ConnectionRefusedError()))
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return lambda: context


class TestHandleLookup:
    """Tests for the settings lookup operation."""

    @pytest.mark.asyncio
    async def test_registered_uid_returns_settings(self, session_factory, test_settings) -> None:
        """Scenario A: a registered uid gets exactly its stored settings."""
        async with session_factory() as session:
            await PluginRegistryService(session).create_record(
                PluginRecordCreate(type="ai-search", uid="test-uid-001", settings=CME_SETTINGS, context="[]")
            )
        resolver = PluginResolver(RegistryTier(session_factory, "ai-search"), AllowlistTier(ALLOWLIST))
        orchestrator = SearchOrchestrator(resolver, _search_service(), settings=test_settings)

        response = await orchestrator.handle_lookup("test-uid-001")

        assert response.uid == "test-uid-001"
        assert response.settings == CME_SETTINGS
        assert response.message == LOOKUP_MESSAGE
        assert response.degraded is False

    @pytest.mark.asyncio
    async def test_unknown_uid_is_not_found(self, session_factory, test_settings) -> None:
        """Scenario B: an unknown uid is a not-found error carrying the uid."""
        resolver = PluginResolver(RegistryTier(session_factory, "ai-search"), AllowlistTier(ALLOWLIST))
        orchestrator = SearchOrchestrator(resolver, _search_service(), settings=test_settings)

        with pytest.raises(PluginNotFoundError) as exc_info:
            await orchestrator.handle_lookup("does-not-exist")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Plugin not found. Please provide a valid uid."
        assert exc_info.value.details == {"uid": "does-not-exist"}

    @pytest.mark.asyncio
    async def test_degraded_lookup_is_flagged(self, test_settings) -> None:
        """Scenario D: registry down, allowlisted uid still resolves."""
        resolver = PluginResolver(RegistryTier(_unreachable_registry(), "ai-search"), AllowlistTier(ALLOWLIST))
        orchestrator = SearchOrchestrator(resolver, _search_service(), settings=test_settings)

        response = await orchestrator.handle_lookup("search-456")

        assert response.degraded is True
        assert response.message == DEGRADED_LOOKUP_MESSAGE
        assert response.settings == CME_SETTINGS

    @pytest.mark.asyncio
    async def test_response_never_contains_corpus(self, test_settings, sample_corpus) -> None:
        resolution = PluginResolution(uid="u1", settings={"title": "T"}, corpus=sample_corpus)
        orchestrator = SearchOrchestrator(_resolver_with(resolution), _search_service(), settings=test_settings)

        response = await orchestrator.handle_lookup("u1")
        dumped = response.model_dump_json()

        assert "Cancer" not in dumped
        assert "corpus" not in dumped

    @pytest.mark.asyncio
    @pytest.mark.parametrize("uid", [None, "", "   "])
    async def test_blank_uid_is_rejected(self, uid, test_settings) -> None:
        resolver = _resolver_with()
        orchestrator = SearchOrchestrator(resolver, _search_service(), settings=test_settings)

        with pytest.raises(ValidationError):
            await orchestrator.handle_lookup(uid)

        resolver.lookup_settings.assert_not_called()

    @pytest.mark.asyncio
    async def test_overlong_uid_is_rejected(self, test_settings) -> None:
        orchestrator = SearchOrchestrator(_resolver_with(), _search_service(), settings=test_settings)

        with pytest.raises(ValidationError):
            await orchestrator.handle_lookup("x" * 256)


class TestHandleQuery:
    """Tests for the query execution operation."""

    @pytest.mark.asyncio
    async def test_ai_ranked_results(self, test_settings, sample_corpus) -> None:
        """Scenario C: a cancer query over the sample corpus is AI ranked."""
        model_client = MagicMock()
        model_client.complete = AsyncMock(
            return_value=CompletionResult(
                content=(
                    '```json\n[{"title": "Advanced Cancer Treatment Options", "description": "d", '
                    '"url": "https://medical-education.com/cancer-treatment-guide", "score": 96, '
                    '"matchedFields": ["title", "tags"], "highlights": ["cancer treatment"]}]\n```'
                ),
                model="gpt-3.5-turbo",
            )
        )
        resolution = PluginResolution(uid="test-uid-001", settings=CME_SETTINGS, corpus=sample_corpus)
        orchestrator = SearchOrchestrator(
            _resolver_with(resolution),
            AISearchService(model_client=model_client, settings=test_settings),
            settings=test_settings,
        )

        response = await orchestrator.handle_query("test-uid-001", "cancer treatment")

        assert response.search_type == SearchType.AI_POWERED
        assert response.total_results == len(response.results) >= 1
        assert all(0.0 <= r.relevance_score <= 1.0 for r in response.results)
        assert response.results[0].relevance_score == pytest.approx(0.96)
        body = response.model_dump(by_alias=True)
        assert body["searchType"] == "ai_powered"
        assert body["results"][0]["relevanceScore"] == pytest.approx(0.96)

    @pytest.mark.asyncio
    async def test_malformed_model_output_is_format_error(self, test_settings, sample_corpus) -> None:
        """Scenario E: non-JSON model text is a format error, distinct from not-found."""
        model_client = MagicMock()
        model_client.complete = AsyncMock(return_value=CompletionResult(content="Sorry, no idea.", model="m"))
        resolution = PluginResolution(uid="test-uid-001", corpus=sample_corpus)
        orchestrator = SearchOrchestrator(
            _resolver_with(resolution),
            AISearchService(model_client=model_client, settings=test_settings),
            settings=test_settings,
        )

        with pytest.raises(UpstreamFormatError) as exc_info:
            await orchestrator.handle_query("test-uid-001", "cancer")

        assert exc_info.value.error_code == "AI_RESPONSE_FORMAT_ERROR"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_unknown_uid_is_not_found(self, test_settings) -> None:
        service = _search_service()
        orchestrator = SearchOrchestrator(
            _resolver_with(error=PluginNotFoundError("nope")), service, settings=test_settings
        )

        with pytest.raises(PluginNotFoundError):
            await orchestrator.handle_query("nope", "cancer")

        service.search.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [None, "", "  \t "])
    async def test_blank_query_is_rejected(self, query, test_settings) -> None:
        orchestrator = SearchOrchestrator(_resolver_with(), _search_service(), settings=test_settings)

        with pytest.raises(ValidationError):
            await orchestrator.handle_query("test-uid-001", query)

    @pytest.mark.asyncio
    async def test_config_error_propagates(self, make_settings, sample_corpus) -> None:
        settings = make_settings(ai_search_fallback_on_error=True)
        resolution = PluginResolution(uid="u1", corpus=sample_corpus)
        orchestrator = SearchOrchestrator(
            _resolver_with(resolution), _search_service(error=UpstreamConfigError()), settings=settings
        )

        with pytest.raises(UpstreamConfigError):
            await orchestrator.handle_query("u1", "cancer")

    @pytest.mark.asyncio
    async def test_degraded_resolution_uses_keyword_fallback(self, test_settings) -> None:
        service = _search_service()
        resolution = PluginResolution(uid="search-456", settings=CME_SETTINGS, source=ResolutionSource.ALLOWLIST)
        orchestrator = SearchOrchestrator(_resolver_with(resolution), service, settings=test_settings)

        response = await orchestrator.handle_query("search-456", "cancer")

        assert response.search_type == SearchType.FALLBACK
        assert response.results == []
        assert response.total_results == 0
        service.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_error_without_fallback_propagates(self, test_settings, sample_corpus) -> None:
        resolution = PluginResolution(uid="u1", corpus=sample_corpus)
        orchestrator = SearchOrchestrator(
            _resolver_with(resolution),
            _search_service(error=UpstreamProviderError("HTTP 500")),
            settings=test_settings,
        )

        with pytest.raises(UpstreamProviderError):
            await orchestrator.handle_query("u1", "cancer")

    @pytest.mark.asyncio
    async def test_provider_error_with_fallback_uses_keywords(self, make_settings, sample_corpus) -> None:
        settings = make_settings(ai_search_fallback_on_error=True)
        resolution = PluginResolution(uid="u1", corpus=sample_corpus)
        orchestrator = SearchOrchestrator(
            _resolver_with(resolution),
            _search_service(error=UpstreamProviderError("HTTP 500")),
            settings=settings,
        )

        response = await orchestrator.handle_query("u1", "cancer treatment")

        assert response.search_type == SearchType.FALLBACK
        assert response.results[0].title == "Advanced Cancer Treatment Options"

    @pytest.mark.asyncio
    async def test_result_count_matches_engine_output(self, test_settings) -> None:
        results = [RankedResult(id=i, relevance_score=0.5) for i in range(1, 4)]
        orchestrator = SearchOrchestrator(
            _resolver_with(PluginResolution(uid="u1")), _search_service(results=results), settings=test_settings
        )

        response = await orchestrator.handle_query("u1", "q")

        assert response.total_results == 3
        assert response.query == "q"
