"""
Document host abstraction for the widget loader.

The loader never touches a concrete DOM. It talks to a ``DocumentHost``
(find elements, observe insertions, inject styles, dispatch events) and to
``WidgetElement`` nodes. ``SoupDocument`` implements both over BeautifulSoup
so host pages can be processed server-side.
"""

from collections import defaultdict
from collections.abc import Callable
from typing import Any, Protocol

from bs4 import BeautifulSoup, Tag


class WidgetElement(Protocol):
    """A node of the host document."""

    @property
    def key(self) -> int: ...

    @property
    def tag_name(self) -> str: ...

    def get_attribute(self, name: str) -> str | None: ...

    def set_attribute(self, name: str, value: str) -> None: ...

    def remove_attribute(self, name: str) -> None: ...

    def has_attribute(self, name: str) -> bool: ...

    def set_inner_html(self, html: str) -> None: ...

    def select_one(self, selector: str) -> "WidgetElement | None": ...

    def find_all(self, tag_name: str) -> list["WidgetElement"]: ...

    def get_text(self) -> str: ...

    def set_text(self, text: str) -> None: ...


InsertionObserver = Callable[[list[WidgetElement]], None]
EventListener = Callable[[dict[str, Any]], None]


class DocumentHost(Protocol):
    """The page a loader runs in."""

    @property
    def page_url(self) -> str: ...

    def find_elements(self, tag_name: str) -> list[WidgetElement]: ...

    def observe(self, callback: InsertionObserver) -> None:
        """Call ``callback`` with the top-level nodes of every later insertion."""
        ...

    def get_element_by_id(self, element_id: str) -> WidgetElement | None: ...

    def inject_style(self, element_id: str, css: str) -> WidgetElement: ...

    def add_event_listener(self, name: str, listener: EventListener) -> None: ...

    def dispatch_event(self, name: str, detail: dict[str, Any]) -> None: ...

    def script_src(self, fragment: str) -> str | None:
        """Return the src of the last script element whose src contains ``fragment``."""
        ...


class SoupElement:
    """``WidgetElement`` backed by a bs4 ``Tag``."""

    def __init__(self, tag: Tag):
        self.tag = tag

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SoupElement) and other.tag is self.tag

    def __hash__(self) -> int:
        return id(self.tag)

    def __repr__(self) -> str:
        return f"<SoupElement {self.tag.name} {dict(self.tag.attrs)}>"

    @property
    def key(self) -> int:
        return id(self.tag)

    @property
    def tag_name(self) -> str:
        return self.tag.name

    def get_attribute(self, name: str) -> str | None:
        value = self.tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def set_attribute(self, name: str, value: str) -> None:
        self.tag[name] = value

    def remove_attribute(self, name: str) -> None:
        if name in self.tag.attrs:
            del self.tag[name]

    def has_attribute(self, name: str) -> bool:
        return name in self.tag.attrs

    def set_inner_html(self, html: str) -> None:
        self.tag.clear()
        fragment = BeautifulSoup(html, "html.parser")
        for child in list(fragment.contents):
            self.tag.append(child.extract())

    def inner_html(self) -> str:
        return self.tag.decode_contents()

    def select_one(self, selector: str) -> "SoupElement | None":
        found = self.tag.select_one(selector)
        return SoupElement(found) if found is not None else None

    def find_all(self, tag_name: str) -> list["SoupElement"]:
        return [SoupElement(t) for t in self.tag.find_all(tag_name)]

    def get_text(self) -> str:
        return self.tag.get_text()

    def set_text(self, text: str) -> None:
        self.tag.string = text


class SoupDocument:
    """``DocumentHost`` over an HTML page parsed with BeautifulSoup."""

    def __init__(self, html: str, url: str = ""):
        self.soup = BeautifulSoup(html, "html.parser")
        self._url = url
        self._observers: list[InsertionObserver] = []
        self._listeners: dict[str, list[EventListener]] = defaultdict(list)

    @property
    def page_url(self) -> str:
        return self._url

    def find_elements(self, tag_name: str) -> list[SoupElement]:
        return [SoupElement(t) for t in self.soup.find_all(tag_name)]

    def observe(self, callback: InsertionObserver) -> None:
        self._observers.append(callback)

    def insert_html(self, html: str, parent: SoupElement | None = None) -> list[SoupElement]:
        """Append an HTML fragment and notify observers, like a DOM mutation."""
        target = parent.tag if parent is not None else (self.soup.body or self.soup)
        fragment = BeautifulSoup(html, "html.parser")
        inserted: list[SoupElement] = []
        for child in list(fragment.contents):
            node = child.extract()
            target.append(node)
            if isinstance(node, Tag):
                inserted.append(SoupElement(node))

        if inserted:
            for observer in list(self._observers):
                observer(inserted)
        return inserted

    def get_element_by_id(self, element_id: str) -> SoupElement | None:
        found = self.soup.find(id=element_id)
        return SoupElement(found) if isinstance(found, Tag) else None

    def inject_style(self, element_id: str, css: str) -> SoupElement:
        head = self.soup.head
        if head is None:
            head = self.soup.new_tag("head")
            self.soup.insert(0, head)
        style = self.soup.new_tag("style", id=element_id)
        style.string = css
        head.append(style)
        return SoupElement(style)

    def add_event_listener(self, name: str, listener: EventListener) -> None:
        self._listeners[name].append(listener)

    def dispatch_event(self, name: str, detail: dict[str, Any]) -> None:
        for listener in list(self._listeners.get(name, ())):
            listener(detail)

    def script_src(self, fragment: str) -> str | None:
        matches = [s.get("src") for s in self.soup.find_all("script", src=True) if fragment in s.get("src", "")]
        return matches[-1] if matches else None

    def to_html(self) -> str:
        return str(self.soup)
