"""
Services package for embedsearch.

This package contains the business logic behind the widget protocol.
"""

from .ai_search_service import AISearchService
from .keyword_ranker import KeywordRanker
from .plugin_registry_service import PluginRegistryService
from .plugin_resolver import AllowlistTier, PluginResolver, RegistryTier, build_plugin_resolver
from .search_orchestrator import SearchOrchestrator

__all__ = [
    "AISearchService",
    "AllowlistTier",
    "KeywordRanker",
    "PluginRegistryService",
    "PluginResolver",
    "RegistryTier",
    "SearchOrchestrator",
    "build_plugin_resolver",
]
