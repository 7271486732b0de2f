"""Local keyword ranking used when results cannot come from the ranking model."""

import re
from typing import Any

from ..schemas.search import RankedResult

_TOKEN_RE = re.compile(r"[\w']+", re.UNICODE)

# Field weights; a query term found in the title counts more than one in the description
FIELD_WEIGHTS: dict[str, float] = {"title": 3.0, "tags": 2.0, "description": 1.0}


def tokenize(text: str) -> list[str]:
    return [t for t in _TOKEN_RE.findall(text.lower()) if len(t) > 1]


def _field_text(document: dict[str, Any], field: str) -> str:
    value = document.get(field)
    if isinstance(value, list):
        return " ".join(str(v) for v in value)
    return "" if value is None else str(value)


class KeywordRanker:
    """Scores documents by weighted query-term overlap.

    Deterministic: equal scores keep corpus order.
    """

    def __init__(self, min_score: float = 0.0):
        self.min_score = min_score

    def rank(self, query: str, corpus: list[dict[str, Any]]) -> list[RankedResult]:
        terms = set(tokenize(query))
        if not terms:
            return []

        max_weight = sum(FIELD_WEIGHTS.values()) * len(terms)
        scored: list[tuple[float, int, dict[str, Any], list[str], list[str]]] = []
        for position, document in enumerate(corpus):
            weight = 0.0
            matched_fields: list[str] = []
            highlights: set[str] = set()
            for field, field_weight in FIELD_WEIGHTS.items():
                hits = terms & set(tokenize(_field_text(document, field)))
                if hits:
                    weight += field_weight * len(hits)
                    matched_fields.append(field)
                    highlights |= hits
            score = weight / max_weight
            if score > self.min_score:
                scored.append((score, position, document, matched_fields, sorted(highlights)))

        scored.sort(key=lambda entry: (-entry[0], entry[1]))
        return [
            RankedResult(
                id=index,
                title=_field_text(document, "title") or None,
                description=_field_text(document, "description") or None,
                url=_field_text(document, "url") or None,
                relevance_score=round(score, 4),
                matched_fields=matched_fields,
                highlights=highlights,
            )
            for index, (score, _, document, matched_fields, highlights) in enumerate(scored, start=1)
        ]
