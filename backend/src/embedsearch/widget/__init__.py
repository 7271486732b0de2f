"""
Widget loader for embedsearch.

Discovers widget elements in an HTML document, resolves their settings
against the backend and runs searches, mirroring the browser embed script.
"""

from .document import DocumentHost, SoupDocument, SoupElement, WidgetElement
from .loader import PROCESSED_ATTRIBUTE, WidgetLoader
from .render import STYLE_ELEMENT_ID, ensure_styles, merge_settings
from .state import WidgetInstance, WidgetState
from .transport import WidgetTransport, resolve_backend_origin

__all__ = [
    "PROCESSED_ATTRIBUTE",
    "STYLE_ELEMENT_ID",
    "DocumentHost",
    "SoupDocument",
    "SoupElement",
    "WidgetElement",
    "WidgetInstance",
    "WidgetLoader",
    "WidgetState",
    "WidgetTransport",
    "ensure_styles",
    "merge_settings",
    "resolve_backend_origin",
]
