"""Pydantic schemas for plugin registry records and resolutions."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContextDocument(BaseModel):
    """One document of a plugin's server-only corpus.

    Unknown keys are kept so that richer corpora reach the ranking prompt intact.
    """

    model_config = ConfigDict(extra="allow")

    title: str
    description: str = ""
    url: str = "#"
    tags: list[str] = Field(default_factory=list)


class PluginRecordCreate(BaseModel):
    """Input for registering a plugin instance."""

    type: str = Field(..., min_length=1, max_length=100)
    uid: str = Field(..., min_length=1, max_length=255)
    settings: dict[str, Any] = Field(default_factory=dict)
    context: list[ContextDocument] | str | None = None

    @field_validator("uid")
    @classmethod
    def validate_uid(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("uid cannot be blank")
        return v.strip()


class PluginRecordUpdate(BaseModel):
    """Partial update of a plugin instance; ``None`` leaves a field untouched."""

    settings: dict[str, Any] | None = None
    context: list[ContextDocument] | str | None = None


class ResolutionSource(str, Enum):
    """Which registry tier produced a resolution."""

    REGISTRY = "registry"
    ALLOWLIST = "allowlist"


class PluginResolution(BaseModel):
    """Result of resolving a uid.

    ``corpus`` is server-only; API responses are built from ``settings``
    alone and never serialize this object directly.
    """

    uid: str
    settings: dict[str, Any] = Field(default_factory=dict)
    corpus: list[dict[str, Any]] = Field(default_factory=list)
    source: ResolutionSource = ResolutionSource.REGISTRY

    @property
    def degraded(self) -> bool:
        return self.source == ResolutionSource.ALLOWLIST
