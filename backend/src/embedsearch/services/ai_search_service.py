"""
AI search engine.

Builds a ranking prompt from a plugin's corpus and the user's query, sends it
to the external ranking model, and turns the free-form answer into a list of
``RankedResult``. The model output is untrusted: everything it returns goes
through ``parse_ranking_output`` and ``normalize_results`` before it reaches
a response.
"""

import asyncio
import json
import math
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import StrictUndefined, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from ..core.config import Settings, get_settings_instance
from ..core.exceptions import UpstreamConfigError, UpstreamFormatError, UpstreamTimeoutError
from ..core.http_client import get_http_client
from ..core.logging import get_logger
from ..llm.client import RankingModelClient
from ..schemas.search import RankedResult
from .corpus import parse_corpus

logger = get_logger(__name__)

PROMPT_PATH = Path(__file__).resolve().parent.parent / "prompts" / "search_prompt.md"

_FENCE_OPEN_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?\s*```\s*$")

_jinja_env = SandboxedEnvironment(autoescape=False, undefined=StrictUndefined)


@lru_cache(maxsize=1)
def load_prompt_template() -> str:
    return PROMPT_PATH.read_text(encoding="utf-8")


def build_prompt(query: str, corpus: Any, template: str | None = None) -> str:
    """Render the ranking prompt.

    ``corpus`` may be a list of documents or the raw stored text; anything
    that is not a JSON array is ranked as an empty corpus.
    """
    documents = parse_corpus(corpus)
    json_data = json.dumps(documents, indent=2, ensure_ascii=False)
    try:
        tmpl = _jinja_env.from_string(template if template is not None else load_prompt_template())
        return tmpl.render(query=query, json_data=json_data)
    except TemplateError as e:
        # The template ships with the package, so this is a deployment bug
        logger.error("Search prompt template failed to render: %s", e)
        raise


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    stripped = text.strip()
    stripped = _FENCE_OPEN_RE.sub("", stripped, count=1)
    stripped = _FENCE_CLOSE_RE.sub("", stripped, count=1)
    return stripped.strip()


def parse_ranking_output(text: str) -> list[Any]:
    """Parse the model's answer into a JSON array.

    Raises:
        UpstreamFormatError: the text is not JSON, or is JSON but not an array

    """
    cleaned = strip_code_fences(text or "")
    try:
        parsed = json.loads(cleaned)
    except ValueError as e:
        # JSONDecodeError, or an integer literal past the int parsing limit
        logger.warning("AI search output is not valid JSON", extra={"preview": cleaned[:200]})
        raise UpstreamFormatError("Invalid JSON response from AI search", details={"reason": str(e)}) from e

    if not isinstance(parsed, list):
        logger.warning("AI search output is not a JSON array", extra={"output_type": type(parsed).__name__})
        raise UpstreamFormatError("AI search returned invalid format")
    return parsed


def normalize_score(value: Any) -> float:
    """Map a 0-100 model score onto [0, 1].

    Missing or non-numeric scores become 0.0; out-of-range scores are clamped.
    """
    if isinstance(value, bool) or value is None:
        score = None
    elif isinstance(value, int):
        # JSON integers are unbounded; beyond float range only the sign matters
        try:
            score = float(value)
        except OverflowError:
            score = math.inf if value > 0 else -math.inf
    elif isinstance(value, float):
        score = value
    else:
        try:
            score = float(str(value).strip())
        except ValueError:
            score = None

    if score is None or math.isnan(score):
        logger.warning("AI search result has no numeric score, using 0", extra={"score": repr(value)[:50]})
        return 0.0

    relevance = score / 100
    if relevance < 0.0 or relevance > 1.0:
        logger.warning("AI search score out of range, clamping", extra={"score": score})
        relevance = min(1.0, max(0.0, relevance))
    return relevance


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def normalize_results(items: list[Any]) -> list[RankedResult]:
    """Convert parsed model output into canonical results, one per element."""
    results: list[RankedResult] = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            logger.warning("AI search result is not an object", extra={"position": index})
            results.append(RankedResult(id=index, relevance_score=0.0))
            continue
        results.append(
            RankedResult(
                id=index,
                title=_as_text(item.get("title")),
                description=_as_text(item.get("description")),
                url=_as_text(item.get("url")),
                relevance_score=normalize_score(item.get("score")),
                matched_fields=item.get("matchedFields"),
                highlights=item.get("highlights"),
            )
        )
    return results


class AISearchService:
    """Ranks a corpus against a query with the external model."""

    def __init__(
        self,
        model_client: RankingModelClient | None = None,
        settings: Settings | None = None,
        template: str | None = None,
    ):
        self.settings = settings or get_settings_instance()
        self.model_client = model_client
        self.template = template

    async def _get_model_client(self) -> RankingModelClient:
        if self.model_client is None:
            self.model_client = RankingModelClient(await get_http_client(), self.settings)
        return self.model_client

    async def search(self, query: str, corpus: Any) -> list[RankedResult]:
        """Rank ``corpus`` for ``query``.

        Raises:
            UpstreamConfigError: no API key is configured, before any network call
            UpstreamTimeoutError: the ranking call exceeded the configured timeout
            UpstreamProviderError: the provider failed
            UpstreamFormatError: the answer is not a JSON array

        """
        if not self.settings.ai_search_configured:
            logger.error("AI search requested but no OpenAI API key is configured")
            raise UpstreamConfigError()

        prompt = build_prompt(query, corpus, self.template)
        client = await self._get_model_client()

        try:
            completion = await asyncio.wait_for(client.complete(prompt), timeout=self.settings.ai_search_timeout)
        except TimeoutError as e:
            logger.error("AI search timed out", extra={"timeout": self.settings.ai_search_timeout})
            raise UpstreamTimeoutError(details={"timeout": self.settings.ai_search_timeout}) from e

        results = normalize_results(parse_ranking_output(completion.content))
        logger.info("AI search completed", extra={"query_length": len(query), "result_count": len(results)})
        return results
