"""Helpers for the server-only document corpus stored on plugin records."""

import json
from typing import Any

from pydantic import BaseModel

from ..core.logging import get_logger

logger = get_logger(__name__)


def parse_corpus(raw: Any) -> list[dict[str, Any]]:
    """Return the corpus as a list of documents.

    Anything that is not a JSON array (free text, malformed JSON, a JSON
    object) yields an empty corpus instead of an error. Non-object items in
    the array are dropped.
    """
    if raw is None or raw == "":
        return []

    parsed = raw
    if isinstance(raw, (str, bytes)):
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Corpus is not valid JSON, using empty corpus", extra={"error": str(e)})
            return []

    if not isinstance(parsed, list):
        logger.warning("Corpus is not a JSON array, using empty corpus", extra={"corpus_type": type(parsed).__name__})
        return []

    documents: list[dict[str, Any]] = []
    for item in parsed:
        if isinstance(item, BaseModel):
            item = item.model_dump()
        if isinstance(item, dict):
            documents.append(item)
    return documents


def serialize_corpus(context: Any) -> str | None:
    """Serialize a corpus for storage; strings are stored untouched."""
    if context is None:
        return None
    if isinstance(context, str):
        return context
    return json.dumps(
        [item.model_dump() if isinstance(item, BaseModel) else item for item in context],
        ensure_ascii=False,
    )
