"""Unit tests for the BeautifulSoup document host and widget rendering."""

from embedsearch.widget import render
from embedsearch.widget.document import SoupDocument


class TestSoupDocument:
    def test_insert_reports_top_level_nodes(self) -> None:
        document = SoupDocument("<html><body></body></html>")
        batches = []
        document.observe(batches.append)

        inserted = document.insert_html('<div><ai-search uid="a"></ai-search></div><p>text</p>')

        assert [node.tag_name for node in inserted] == ["div", "p"]
        assert batches == [inserted]
        assert [e.get_attribute("uid") for e in inserted[0].find_all("ai-search")] == ["a"]

    def test_script_src_uses_last_match(self) -> None:
        document = SoupDocument(
            '<script src="https://old.example/v1/embed/ai-search.js"></script>'
            '<script src="/other.js"></script>'
            '<script src="https://new.example/v1/embed/ai-search.js"></script>'
        )

        assert document.script_src("ai-search.js") == "https://new.example/v1/embed/ai-search.js"
        assert document.script_src("missing.js") is None

    def test_inject_style_creates_head(self) -> None:
        document = SoupDocument("<body><ai-search></ai-search></body>")

        document.inject_style("ai-search-styles", ".ais-container {}")

        assert document.get_element_by_id("ai-search-styles") is not None
        assert document.soup.head.style.string == ".ais-container {}"

    def test_events_reach_listeners(self) -> None:
        document = SoupDocument("")
        received = []
        document.add_event_listener("ai-search-processed", received.append)

        document.dispatch_event("ai-search-processed", {"uid": "a"})
        document.dispatch_event("ai-search-error", {"uid": "b"})

        assert received == [{"uid": "a"}]

    def test_class_attribute_reads_as_string(self) -> None:
        [element] = SoupDocument('<div class="ais-container dark"></div>').find_elements("div")

        assert element.get_attribute("class") == "ais-container dark"


class TestRender:
    def test_merge_settings_keeps_defaults_for_missing_keys(self) -> None:
        merged = render.merge_settings({"title": "CME", "placeholder": None})

        assert merged["title"] == "CME"
        assert merged["placeholder"] == "Search..."
        assert merged["submitText"] == "Search"

    def test_form_escapes_settings(self) -> None:
        html = render.render_form("u1", {"title": "<script>alert(1)</script>"})

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert 'data-uid="u1"' in html

    def test_empty_results(self) -> None:
        assert "No results found for your search." in render.render_results([])

    def test_zero_relevance_is_not_shown(self) -> None:
        html = render.render_results([{"title": "Doc", "url": "https://x", "relevanceScore": 0.0}])

        assert "Search Results (1)" in html
        assert "Relevance" not in html

    def test_untitled_result_links_nowhere(self) -> None:
        html = render.render_results([{"relevanceScore": 0.5}])

        assert "Untitled" in html
        assert 'href="#"' in html
        assert "Relevance: 50%" in html

    def test_ensure_styles_is_idempotent(self) -> None:
        document = SoupDocument("<html><head></head><body></body></html>")

        assert render.ensure_styles(document) is True
        assert render.ensure_styles(document) is False
        assert len(document.soup.find_all("style")) == 1
