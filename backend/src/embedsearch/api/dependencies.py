"""
FastAPI dependencies for embedsearch.

Each dependency builds one collaborator of the search pipeline so tests can
replace it through ``app.dependency_overrides``.
"""

from fastapi import Depends

from ..services.ai_search_service import AISearchService
from ..services.plugin_resolver import PluginResolver, build_plugin_resolver
from ..services.search_orchestrator import SearchOrchestrator


def get_plugin_resolver() -> PluginResolver:
    return build_plugin_resolver()


def get_search_service() -> AISearchService:
    return AISearchService()


def get_search_orchestrator(
    resolver: PluginResolver = Depends(get_plugin_resolver),
    search_service: AISearchService = Depends(get_search_service),
) -> SearchOrchestrator:
    return SearchOrchestrator(resolver, search_service)
