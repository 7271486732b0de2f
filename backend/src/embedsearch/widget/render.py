"""HTML rendering for widget instances."""

from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .document import DocumentHost

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

STYLE_ELEMENT_ID = "ai-search-styles"

LOADING_TEXT = "Searching..."

# Rendered when the lookup response omits a key
DEFAULT_WIDGET_SETTINGS: dict[str, str] = {
    "theme": "default",
    "placeholder": "Search...",
    "title": "Search",
    "submitText": "Search",
}


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def merge_settings(settings: dict[str, Any] | None) -> dict[str, Any]:
    """Overlay lookup settings on the widget defaults; ``None`` values keep the default."""
    merged: dict[str, Any] = dict(DEFAULT_WIDGET_SETTINGS)
    for key, value in (settings or {}).items():
        if value is not None:
            merged[key] = value
    return merged


def render_form(uid: str, settings: dict[str, Any]) -> str:
    return get_environment().get_template("form.html").render(uid=uid, settings=merge_settings(settings))


def render_error(message: str) -> str:
    return get_environment().get_template("error.html").render(message=message)


def render_results(results: list[dict[str, Any]]) -> str:
    return get_environment().get_template("results.html").render(results=results)


def render_loading() -> str:
    return f'<p class="ais-loading">{LOADING_TEXT}</p>'


def render_search_error(message: str) -> str:
    env = get_environment()
    return env.from_string('<p class="ais-search-error">{{ message }}</p>').render(message=message)


def stylesheet() -> str:
    return (TEMPLATES_DIR / "styles.css").read_text(encoding="utf-8")


def ensure_styles(document: DocumentHost) -> bool:
    """Inject the widget stylesheet once per document.

    Returns True when this call inserted it. Check and insert run with no
    await in between, so concurrent initializations cannot both insert.
    """
    if document.get_element_by_id(STYLE_ELEMENT_ID) is not None:
        return False
    document.inject_style(STYLE_ELEMENT_ID, stylesheet())
    return True
