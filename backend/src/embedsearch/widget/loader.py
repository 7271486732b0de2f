"""
Widget loader.

Discovers widget elements in a host document, resolves their settings
against the backend, renders the search form, and runs searches on
submission. Every element is processed once: the processed marker is set
synchronously when the element is claimed, so repeated discovery of the
same node never causes a second lookup.

Failures are contained per element: they are rendered inline and reported
through the ``<tag>-error`` document event, never raised into the host.
"""

import asyncio
from typing import Any

from ..core.config import Settings, get_settings_instance
from ..core.exceptions import TransportError, ValidationError, WidgetStateError
from ..core.logging import LoggerMixin
from . import render
from .document import DocumentHost, WidgetElement
from .state import WidgetInstance, WidgetState
from .transport import WidgetTransport, resolve_backend_origin

PROCESSED_ATTRIBUTE = "data-ais-processed"

LOOKUP_FAILED_MESSAGE = "Plugin not found. Please provide a valid uid."
SEARCH_FAILED_MESSAGE = "Search request failed"
SEARCH_UNAVAILABLE_MESSAGE = "Unable to perform search"
INVALID_RESPONSE_MESSAGE = "Invalid response from search service."


class WidgetLoader(LoggerMixin):
    """Drives every widget instance of one document."""

    def __init__(
        self,
        document: DocumentHost,
        transport: WidgetTransport | None = None,
        settings: Settings | None = None,
        user_agent: str | None = None,
    ):
        self.document = document
        self.settings = settings or get_settings_instance()
        self.tag_name = self.settings.widget_tag
        self.transport = transport
        self.user_agent = user_agent
        self.instances: dict[int, WidgetInstance] = {}
        self._tasks: set[asyncio.Task] = set()
        self._started = False

    @property
    def processed_event(self) -> str:
        return f"{self.tag_name}-processed"

    @property
    def error_event(self) -> str:
        return f"{self.tag_name}-error"

    async def start(self) -> None:
        """Process existing elements and watch for inserted ones."""
        if self._started:
            return
        self._started = True

        self._ensure_transport()
        render.ensure_styles(self.document)

        elements = self.document.find_elements(self.tag_name)
        self.logger.debug(f"Found {len(elements)} widget element(s)")
        for element in elements:
            self.schedule(element)

        self.document.observe(self.on_elements_added)

    def _ensure_transport(self) -> WidgetTransport:
        if self.transport is None:
            script_src = self.document.script_src(f"{self.tag_name}.js")
            origin = resolve_backend_origin(script_src, self.document.page_url)
            self.transport = WidgetTransport(origin, settings=self.settings)
            self.logger.debug("Resolved backend origin", extra={"origin": origin})
        return self.transport

    def on_elements_added(self, nodes: list[WidgetElement]) -> None:
        """Insertion callback: schedule top-level and nested widget elements."""
        for node in nodes:
            if node.tag_name == self.tag_name:
                self.schedule(node)
            for nested in node.find_all(self.tag_name):
                self.schedule(nested)

    def claim(self, element: WidgetElement) -> bool:
        """Mark ``element`` processed; False if it already was."""
        if element.has_attribute(PROCESSED_ATTRIBUTE):
            return False
        element.set_attribute(PROCESSED_ATTRIBUTE, "true")
        return True

    def schedule(self, element: WidgetElement) -> asyncio.Task | None:
        if not self.claim(element):
            return None
        task = asyncio.get_running_loop().create_task(self._process(element))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def process_element(self, element: WidgetElement) -> WidgetInstance | None:
        """Resolve and render one element; None if it was already processed."""
        if not self.claim(element):
            return None
        return await self._process(element)

    async def drain(self) -> None:
        """Wait for every scheduled element to finish processing."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        await self.drain()
        if self.transport is not None:
            await self.transport.close()

    def get_instance(self, element: WidgetElement) -> WidgetInstance | None:
        return self.instances.get(element.key)

    async def _process(self, element: WidgetElement) -> WidgetInstance:
        if render.ensure_styles(self.document):
            self.logger.debug("Injected widget stylesheet")

        uid = (element.get_attribute("uid") or "").strip()
        instance = WidgetInstance(element, uid or None)
        self.instances[element.key] = instance

        if not uid:
            error = ValidationError("Widget element found without a uid attribute")
            self.logger.error(error.message)
            self._fail(instance, error.message, error)
            return instance

        instance.transition(WidgetState.RESOLVING)
        try:
            body = await self._ensure_transport().lookup(
                uid, page_url=self.document.page_url, user_agent=self.user_agent
            )
        except TransportError as e:
            self.logger.error(f"Failed to process element with uid '{uid}': {e.message}")
            self._fail(instance, e.message, e)
            return instance

        if not body.get("success"):
            message = body.get("error") or LOOKUP_FAILED_MESSAGE
            self.logger.warning(f"Settings lookup failed for uid '{uid}': {message}")
            self._fail(instance, message, body)
            return instance

        if not isinstance(body.get("settings") or {}, dict):
            self.logger.warning(f"Settings lookup for uid '{uid}' returned malformed settings")
            self._fail(instance, INVALID_RESPONSE_MESSAGE, body)
            return instance

        instance.settings = render.merge_settings(body.get("settings"))
        element.set_inner_html(render.render_form(uid, instance.settings))
        instance.transition(WidgetState.SETTINGS_SHOWN)
        self.document.dispatch_event(self.processed_event, {"uid": uid, "result": body, "element": element})
        return instance

    def _fail(self, instance: WidgetInstance, message: str, error: Any) -> None:
        instance.element.set_inner_html(render.render_error(message))
        instance.transition(WidgetState.ERROR_SHOWN)
        self.document.dispatch_event(
            self.error_event, {"uid": instance.uid, "error": error, "element": instance.element}
        )

    async def submit(self, element: WidgetElement, query: str) -> dict[str, Any] | None:
        """Run a search for one rendered widget.

        Blank queries are ignored and return None. The submit control is
        disabled for the duration of the request and restored on every exit.

        Raises:
            WidgetStateError: the element has no resolved settings or a search is already in flight

        """
        instance = self.instances.get(element.key)
        if instance is None or instance.settings is None:
            current = instance.state.value if instance is not None else "unresolved"
            raise WidgetStateError(current, WidgetState.SUBMITTING.value)

        query = (query or "").strip()
        if not query:
            return None

        # Raises before any request when a search is already running
        instance.begin_submit()

        button = element.select_one(".ais-submit")
        results_box = element.select_one(".ais-results")
        input_box = element.select_one(".ais-input")
        label = button.get_text() if button is not None else None

        if input_box is not None:
            input_box.set_attribute("value", query)
        if button is not None:
            button.set_attribute("disabled", "disabled")
            button.set_text(render.LOADING_TEXT)
        if results_box is not None:
            results_box.set_attribute("style", "display: block;")
            results_box.set_inner_html(render.render_loading())

        try:
            body = await self.transport.search(instance.uid, query)
            if body.get("success") and not isinstance(body.get("results") or [], list):
                self.logger.warning(f"Search for uid '{instance.uid}' returned malformed results")
                body = {"success": False, "error": INVALID_RESPONSE_MESSAGE}
            if body.get("success"):
                self._show_results(results_box, render.render_results(body.get("results") or []))
                instance.transition(WidgetState.RESULTS_SHOWN)
            else:
                message = body.get("error") or SEARCH_FAILED_MESSAGE
                self._show_results(results_box, render.render_search_error(message))
                instance.transition(WidgetState.ERROR_SHOWN)
                self.document.dispatch_event(
                    self.error_event, {"uid": instance.uid, "error": body, "element": element}
                )
            return body
        except TransportError as e:
            self.logger.error(f"Search failed for uid '{instance.uid}': {e.message}")
            self._show_results(results_box, render.render_search_error(e.message or SEARCH_UNAVAILABLE_MESSAGE))
            instance.transition(WidgetState.ERROR_SHOWN)
            self.document.dispatch_event(self.error_event, {"uid": instance.uid, "error": e, "element": element})
            return {"success": False, "error": e.message}
        finally:
            if instance.state is WidgetState.SUBMITTING:
                instance.transition(WidgetState.ERROR_SHOWN)
            if button is not None:
                button.remove_attribute("disabled")
                if label is not None:
                    button.set_text(label)

    def _show_results(self, results_box: WidgetElement | None, html: str) -> None:
        if results_box is not None:
            results_box.set_inner_html(html)
