"""
Host page adapter.

The engine talks to the live webmail surface only through the ``Page``
protocol: read the current tree, and (for draft write-back only) click,
focus, replace inner HTML and fire DOM-style events. ``HtmlPage`` is the
in-process implementation over BeautifulSoup; a browser bridge implements
the same protocol.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal, Protocol, runtime_checkable

from bs4 import BeautifulSoup, Tag

from inbox_triage.observability.logging import get_logger

logger = get_logger(__name__)

NavigationKind = Literal["push", "replace", "pop"]


@dataclass
class MutationRecord:
    """One observed change to the page tree."""

    type: Literal["childList", "attributes"]
    target: Tag | None = None
    added_nodes: list[Tag] = field(default_factory=list)
    removed_nodes: list[Tag] = field(default_factory=list)
    attribute_name: str | None = None


@dataclass
class DispatchedEvent:
    event_type: str
    target: Tag
    bubbles: bool = True


class PageListener(Protocol):
    def on_mutations(self, records: list[MutationRecord]) -> None: ...

    def on_navigation(self, url: str, kind: NavigationKind) -> None: ...


@runtime_checkable
class Page(Protocol):
    url: str

    def document(self) -> BeautifulSoup: ...

    def click(self, element: Tag) -> None: ...

    def focus(self, element: Tag) -> None: ...

    def set_inner_html(self, element: Tag, markup: str) -> None: ...

    def dispatch_event(self, element: Tag, event_type: str) -> None: ...

    def subscribe(self, listener: PageListener) -> Callable[[], None]: ...


ClickHandler = Callable[["HtmlPage", Tag], None]


class HtmlPage:
    """
    In-memory page backed by a BeautifulSoup tree.

    Re-renders replace the tree; navigation changes the URL and notifies
    listeners; click handlers let callers script how the host reacts to a
    click (e.g. opening a compose box).
    """

    def __init__(self, markup: str = "", url: str = "about:blank"):
        self.url = url
        self._soup = BeautifulSoup(markup, "html.parser")
        self._listeners: list[PageListener] = []
        self._click_handlers: list[tuple[str, ClickHandler]] = []
        self.events: list[DispatchedEvent] = []
        self.focused: Tag | None = None

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def document(self) -> BeautifulSoup:
        return self._soup

    # ------------------------------------------------------------------
    # Host-side changes (what the webmail app itself would do)
    # ------------------------------------------------------------------

    def render(self, markup: str) -> None:
        """Replace the whole tree, as a full re-render would."""
        self._soup = BeautifulSoup(markup, "html.parser")
        body = self._soup.body or self._soup
        self._notify_mutations(
            [MutationRecord(type="childList", target=body, added_nodes=self._top_level(body))]
        )

    def append_html(self, parent_selector: str, markup: str) -> list[Tag]:
        """Append parsed markup under the first match of ``parent_selector``."""
        parent = self._soup.select_one(parent_selector)
        if parent is None:
            raise LookupError(f"No element matches {parent_selector!r}")
        fragment = BeautifulSoup(markup, "html.parser")
        added = [child for child in list(fragment.contents) if isinstance(child, Tag)]
        for child in list(fragment.contents):
            parent.append(child.extract())
        self._notify_mutations([MutationRecord(type="childList", target=parent, added_nodes=added)])
        return added

    def remove(self, selector: str) -> list[Tag]:
        removed = []
        for node in self._soup.select(selector):
            parent = node.parent
            removed.append(node.extract())
            self._notify_mutations(
                [MutationRecord(type="childList", target=parent, removed_nodes=[node])]
            )
        return removed

    def set_attribute(self, selector: str, name: str, value: str) -> None:
        node = self._soup.select_one(selector)
        if node is None:
            raise LookupError(f"No element matches {selector!r}")
        node[name] = value
        self._notify_mutations([MutationRecord(type="attributes", target=node, attribute_name=name)])

    def navigate(self, url: str, kind: NavigationKind = "push", markup: str | None = None) -> None:
        """SPA navigation: optionally re-render, then announce the URL change."""
        if markup is not None:
            self._soup = BeautifulSoup(markup, "html.parser")
        self.url = url
        for listener in list(self._listeners):
            listener.on_navigation(url, kind)

    def on_click(self, selector: str, handler: ClickHandler) -> None:
        self._click_handlers.append((selector, handler))

    # ------------------------------------------------------------------
    # Engine-side writes (draft injection only)
    # ------------------------------------------------------------------

    def click(self, element: Tag) -> None:
        for selector, handler in list(self._click_handlers):
            if element.css.match(selector):
                handler(self, element)

    def focus(self, element: Tag) -> None:
        self.focused = element

    def set_inner_html(self, element: Tag, markup: str) -> None:
        element.clear()
        fragment = BeautifulSoup(markup, "html.parser")
        for child in list(fragment.contents):
            element.append(child.extract())

    def dispatch_event(self, element: Tag, event_type: str) -> None:
        self.events.append(DispatchedEvent(event_type=event_type, target=element))

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: PageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify_mutations(self, records: list[MutationRecord]) -> None:
        for listener in list(self._listeners):
            listener.on_mutations(records)

    @staticmethod
    def _top_level(parent: Tag) -> list[Tag]:
        return [child for child in parent.children if isinstance(child, Tag)]
