from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from bs4 import BeautifulSoup, Tag

FORM_CONTROL_TAGS = frozenset({"INPUT", "TEXTAREA", "SELECT"})


class DocumentView(ABC):
    """Minimal read-only view over a loaded document.

    Extraction and challenge detection only talk to this interface, so the
    same heuristics run against a live browser page or a parsed HTML
    snapshot. Elements are opaque handles owned by the implementation."""

    @abstractmethod
    async def query(self, selector: str, within: Any = None) -> List[Any]:
        """Return all elements matching ``selector`` in document order."""

    @abstractmethod
    async def read_text(self, element: Any) -> str:
        """Return the element's text content (untrimmed)."""

    @abstractmethod
    async def read_value(self, element: Any) -> str:
        """Return the current value of a form control."""

    @abstractmethod
    async def tag_name(self, element: Any) -> str:
        """Return the upper-case tag name."""

    @abstractmethod
    async def next_sibling(self, element: Any) -> Optional[Any]:
        """Return the next element sibling, or None."""


class PlaywrightDocument(DocumentView):
    """DocumentView over a live Playwright page."""

    def __init__(self, page: Any) -> None:
        self._page = page

    @property
    def page(self) -> Any:
        return self._page

    async def query(self, selector: str, within: Any = None) -> List[Any]:
        root = within if within is not None else self._page
        return await root.query_selector_all(selector)

    async def read_text(self, element: Any) -> str:
        return (await element.text_content()) or ""

    async def read_value(self, element: Any) -> str:
        return (await element.input_value()) or ""

    async def tag_name(self, element: Any) -> str:
        return str(await element.evaluate("e => e.tagName")).upper()

    async def next_sibling(self, element: Any) -> Optional[Any]:
        handle = await element.evaluate_handle("e => e.nextElementSibling")
        sibling = handle.as_element()
        if sibling is None:
            await handle.dispose()
        return sibling


class SoupDocument(DocumentView):
    """DocumentView over a static HTML snapshot parsed with BeautifulSoup.

    html5lib builds the same tree a browser would, including implied end
    tags such as unclosed <dd>, <td> and <tr>.

    Form control values follow what a browser reports before any user
    input: the ``value`` attribute, the textarea body, or the selected
    (else first) option of a select."""

    def __init__(self, html: str) -> None:
        self._soup = BeautifulSoup(html, "html5lib")

    @classmethod
    def from_file(cls, path: str) -> "SoupDocument":
        with open(path, "r", encoding="utf-8") as f:
            return cls(f.read())

    async def query(self, selector: str, within: Any = None) -> List[Any]:
        root = within if within is not None else self._soup
        return list(root.select(selector))

    async def read_text(self, element: Tag) -> str:
        return element.get_text()

    async def read_value(self, element: Tag) -> str:
        name = element.name.upper()
        if name == "TEXTAREA":
            return element.get_text()
        if name == "SELECT":
            options = element.find_all("option")
            chosen = next((o for o in options if o.has_attr("selected")), None)
            if chosen is None and options:
                chosen = options[0]
            if chosen is None:
                return ""
            value = chosen.get("value")
            return value if value is not None else chosen.get_text().strip()
        return element.get("value") or ""

    async def tag_name(self, element: Tag) -> str:
        return element.name.upper()

    async def next_sibling(self, element: Tag) -> Optional[Tag]:
        return element.find_next_sibling()
