"""Pydantic schemas for the widget lookup and query operations.

Field names on the wire are camelCase because the embed script reads them
directly; Python attributes stay snake_case through aliases.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(UTC)


class SearchType(str, Enum):
    """Provenance of a result set."""

    AI_POWERED = "ai_powered"
    FALLBACK = "fallback"


class LookupRequest(BaseModel):
    """Settings lookup request sent by the widget loader."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str | None = None
    timestamp: str | None = None
    url: str | None = Field(None, max_length=2048)
    user_agent: str | None = Field(None, alias="userAgent", max_length=500)


class QueryRequest(BaseModel):
    """Query execution request sent on form submission."""

    uid: str | None = None
    query: str | None = None


class RankedResult(BaseModel):
    """One canonical search result."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str | None = None
    description: str | None = None
    url: str | None = None
    relevance_score: float = Field(..., ge=0.0, le=1.0, alias="relevanceScore")
    matched_fields: Any = Field(None, alias="matchedFields")
    highlights: Any = None


class LookupResponse(BaseModel):
    """Public settings of a plugin instance."""

    uid: str
    message: str
    timestamp: datetime = Field(default_factory=_now)
    settings: dict[str, Any]
    degraded: bool = False


class QueryResponse(BaseModel):
    """Ranked results for one query."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    query: str
    message: str = "Search completed successfully"
    timestamp: datetime = Field(default_factory=_now)
    results: list[RankedResult]
    total_results: int = Field(..., alias="totalResults")
    search_type: SearchType = Field(..., alias="searchType")
