"""
Pydantic schemas for embedsearch.

This package contains Pydantic models for request/response validation
and serialization of the widget protocol.
"""

from .plugin import ContextDocument, PluginRecordCreate, PluginRecordUpdate, PluginResolution, ResolutionSource
from .search import (
    LookupRequest,
    LookupResponse,
    QueryRequest,
    QueryResponse,
    RankedResult,
    SearchType,
)

__all__ = [
    "ContextDocument",
    "PluginRecordCreate",
    "PluginRecordUpdate",
    "PluginResolution",
    "ResolutionSource",
    "LookupRequest",
    "LookupResponse",
    "QueryRequest",
    "QueryResponse",
    "RankedResult",
    "SearchType",
]
