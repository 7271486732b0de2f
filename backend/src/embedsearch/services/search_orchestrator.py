"""
Search orchestration for the widget protocol.

Composes the plugin resolver and the AI search engine into the two
operations the embed script calls: settings lookup and query execution.
Errors are raised as ``EmbedSearchException`` subclasses; the API layer
turns them into ``{"success": false}`` responses.
"""

from ..core.config import Settings, get_settings_instance
from ..core.exceptions import (
    UpstreamConfigError,
    UpstreamError,
    ValidationError,
)
from ..core.logging import get_logger
from ..schemas.plugin import PluginResolution
from ..schemas.search import LookupResponse, QueryResponse, RankedResult, SearchType
from .ai_search_service import AISearchService
from .keyword_ranker import KeywordRanker
from .plugin_resolver import PluginResolver

logger = get_logger(__name__)

LOOKUP_MESSAGE = "Plugin settings retrieved successfully"
DEGRADED_LOOKUP_MESSAGE = "Plugin settings retrieved (fallback mode)"
QUERY_MESSAGE = "Search completed successfully"


class SearchOrchestrator:
    """Entry point for the lookup and query operations."""

    def __init__(
        self,
        resolver: PluginResolver,
        search_service: AISearchService,
        keyword_ranker: KeywordRanker | None = None,
        settings: Settings | None = None,
    ):
        self.resolver = resolver
        self.search_service = search_service
        self.keyword_ranker = keyword_ranker or KeywordRanker()
        self.settings = settings or get_settings_instance()

    def _require_uid(self, uid: str | None) -> str:
        if uid is None or not uid.strip():
            raise ValidationError("uid is required", details={"field": "uid"})
        uid = uid.strip()
        if len(uid) > self.settings.uid_max_length:
            raise ValidationError(
                f"uid must be at most {self.settings.uid_max_length} characters",
                details={"field": "uid", "uid": uid[:32]},
            )
        return uid

    def _require_query(self, query: str | None) -> str:
        if query is None or not query.strip():
            raise ValidationError("query is required", details={"field": "query"})
        return query.strip()

    async def handle_lookup(self, uid: str | None) -> LookupResponse:
        """Return the public settings of a plugin instance.

        Raises:
            ValidationError: uid missing, blank or too long
            PluginNotFoundError: uid unknown (also in degraded mode)

        """
        uid = self._require_uid(uid)
        resolution = await self.resolver.lookup_settings(uid)

        logger.info("Plugin settings lookup", extra={"uid": uid, "source": resolution.source.value})
        # Only the public settings leave the server; the corpus stays on the resolution
        return LookupResponse(
            uid=resolution.uid,
            message=DEGRADED_LOOKUP_MESSAGE if resolution.degraded else LOOKUP_MESSAGE,
            settings=dict(resolution.settings),
            degraded=resolution.degraded,
        )

    async def handle_query(self, uid: str | None, query: str | None) -> QueryResponse:
        """Rank the plugin's corpus against ``query``.

        Raises:
            ValidationError: uid or query missing or blank
            PluginNotFoundError: uid unknown
            UpstreamError: the ranking model failed and keyword fallback is not enabled

        """
        uid = self._require_uid(uid)
        query = self._require_query(query)
        resolution = await self.resolver.lookup_corpus(uid)

        if resolution.degraded:
            # The real corpus lives in the unreachable registry
            return self._fallback_response(resolution, query, reason="registry_unavailable")

        try:
            results = await self.search_service.search(query, resolution.corpus)
        except UpstreamConfigError:
            raise
        except UpstreamError as e:
            if not self.settings.ai_search_fallback_on_error:
                raise
            logger.warning(
                "AI search failed, answering with keyword ranking",
                extra={"uid": uid, "error_code": e.error_code},
            )
            return self._fallback_response(resolution, query, reason=e.error_code)

        return self._response(resolution.uid, query, results, SearchType.AI_POWERED)

    def _fallback_response(self, resolution: PluginResolution, query: str, reason: str) -> QueryResponse:
        results = self.keyword_ranker.rank(query, resolution.corpus)
        logger.info(
            "Keyword fallback search",
            extra={"uid": resolution.uid, "reason": reason, "result_count": len(results)},
        )
        return self._response(resolution.uid, query, results, SearchType.FALLBACK)

    def _response(self, uid: str, query: str, results: list[RankedResult], search_type: SearchType) -> QueryResponse:
        return QueryResponse(
            uid=uid,
            query=query,
            message=QUERY_MESSAGE,
            results=results,
            total_results=len(results),
            search_type=search_type,
        )
