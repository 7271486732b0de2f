"""Unit tests for corpus parsing and serialization."""

import json

from hypothesis import given
from hypothesis import strategies as st

from embedsearch.schemas.plugin import ContextDocument
from embedsearch.services.corpus import parse_corpus, serialize_corpus


class TestParseCorpus:
    """Tests for parse_corpus."""

    def test_json_array_is_parsed(self, sample_corpus) -> None:
        assert parse_corpus(json.dumps(sample_corpus)) == sample_corpus

    def test_list_is_passed_through(self, sample_corpus) -> None:
        assert parse_corpus(sample_corpus) == sample_corpus

    def test_free_text_becomes_empty(self) -> None:
        """Legacy rows hold an instructional sentence instead of documents."""
        assert parse_corpus("You are an AI assistant helping users search.") == []

    def test_json_object_becomes_empty(self) -> None:
        assert parse_corpus('{"title": "not a list"}') == []

    def test_none_and_blank_become_empty(self) -> None:
        assert parse_corpus(None) == []
        assert parse_corpus("") == []

    def test_non_object_items_are_dropped(self) -> None:
        assert parse_corpus('[{"title": "a"}, 3, "b", null]') == [{"title": "a"}]

    def test_pydantic_documents_are_dumped(self) -> None:
        corpus = parse_corpus([ContextDocument(title="Doc", tags=["x"])])
        assert corpus == [{"title": "Doc", "description": "", "url": "#", "tags": ["x"]}]

    @given(st.text())
    def test_never_raises_on_arbitrary_text(self, raw: str) -> None:
        result = parse_corpus(raw)
        assert isinstance(result, list)
        assert all(isinstance(item, dict) for item in result)


class TestSerializeCorpus:
    """Tests for serialize_corpus."""

    def test_none_stays_none(self) -> None:
        assert serialize_corpus(None) is None

    def test_string_is_stored_untouched(self) -> None:
        assert serialize_corpus("free text") == "free text"

    def test_documents_are_json_encoded(self) -> None:
        stored = serialize_corpus([ContextDocument(title="Doc", category="cme")])
        assert json.loads(stored) == [{"title": "Doc", "description": "", "url": "#", "tags": [], "category": "cme"}]
