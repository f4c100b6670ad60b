"""View handles and the collaborators that load and display them.

The container does not know how views are rendered. It talks to two
collaborators through small protocols:

    MarkupLoader.load_view(markup_path, controller) -> root object
    ViewGraph.resolve_view / show_view / hide_view / attach_nested_view

The implementations in this module are headless. They model windows and
nested views as plain objects and keep a history of every display call,
which is enough to drive navigation without a toolkit and to observe it in
tests. Toolkit adapters implement the same protocols.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, runtime_checkable

from loguru import logger

from .annotations import NestedView
from .errors import NavigationError


@dataclass(eq=False)
class Window:
    """A top-level container displaying at most one view at a time."""

    title: str = ""
    width: int = 0
    height: int = 0
    maximized: bool = False
    modal: bool = False
    content: View | None = None

    @property
    def scene(self) -> Any:
        return self.content.root if self.content is not None else None


@dataclass
class ViewRoot:
    """The object tree produced from a markup file."""

    markup: str
    controller: Any = None
    children: list[tuple[Any, NestedView]] = field(default_factory=list)

    def attach(self, child: Any, spec: NestedView) -> None:
        if spec.attach_to_index >= 0:
            self.children.insert(min(spec.attach_to_index, len(self.children)), (child, spec))
        else:
            self.children.append((child, spec))


@dataclass(eq=False)
class View:
    """A view bound to its controller, optionally displayed in a window."""

    id: str
    root: Any
    controller: Any = None
    title: str = ""
    width: int = 200
    height: int = 100
    pos_x: int = -1
    pos_y: int = -1
    maximized: bool = False
    modal: bool = False
    icon: str = ""
    stylesheets: tuple[str, ...] = ()
    window: Window | None = None

    def show(self, window: Window | None = None) -> Window:
        """Display this view in ``window``, or in a new window when omitted."""
        if window is None:
            window = Window(
                title=self.title,
                width=self.width,
                height=self.height,
                maximized=self.maximized,
                modal=self.modal,
            )
        previous = window.content
        if previous is not None and previous is not self:
            previous.window = None
        window.content = self
        self.window = window
        return window

    def hide(self) -> None:
        if self.window is not None and self.window.content is self:
            self.window.content = None
        self.window = None

    def attach_nested(self, child: View, spec: NestedView) -> None:
        attach = getattr(self.root, "attach", None)
        if attach is None:
            raise NavigationError(
                f"View '{self.id}' does not support nested views (root: {type(self.root).__name__})"
            )
        attach(child, spec)

    @property
    def is_showing(self) -> bool:
        return self.window is not None


@dataclass(frozen=True)
class ShowOptions:
    """How ``ViewGraph.show_view`` displays a view."""

    new_window: bool = False
    window: Window | None = None


@runtime_checkable
class MarkupLoader(Protocol):
    def load_view(self, markup_path: str, controller: Any) -> Any:
        ...


@runtime_checkable
class ViewGraph(Protocol):
    def resolve_view(self, view_id: str) -> View:
        ...

    def show_view(self, view_id: str, options: ShowOptions) -> View:
        ...

    def hide_view(self, view: View) -> None:
        ...

    def attach_nested_view(self, parent: View, child_view_id: str, spec: NestedView) -> View:
        ...


class BasicMarkupLoader:
    """Builds an empty ViewRoot for a markup path."""

    def load_view(self, markup_path: str, controller: Any) -> ViewRoot:
        logger.debug(f"Loading markup '{markup_path}' for {type(controller).__name__}")
        return ViewRoot(markup=markup_path, controller=controller)


@dataclass(frozen=True)
class DisplayEvent:
    """One recorded display call."""

    action: str
    view_id: str
    target: Any = None


class HeadlessViewGraph:
    """View graph resolving views through a lookup callable.

    Every show, hide and attach is appended to ``history``.

    Args:
        lookup: Callable returning the object registered under a view id,
            normally ``container.get_bean``
    """

    def __init__(self, lookup: Callable[[str], Any]):
        self._lookup = lookup
        self._lock = threading.Lock()
        self.history: list[DisplayEvent] = []

    def _record(self, event: DisplayEvent) -> None:
        with self._lock:
            self.history.append(event)

    def events(self, action: str | None = None) -> list[DisplayEvent]:
        with self._lock:
            return [event for event in self.history if action is None or event.action == action]

    def clear_history(self) -> None:
        with self._lock:
            self.history.clear()

    def resolve_view(self, view_id: str) -> View:
        view = self._lookup(view_id)
        if not isinstance(view, View):
            raise NavigationError(
                f"Bean '{view_id}' is not a view (got {type(view).__name__})"
            )
        return view

    def show_view(self, view_id: str, options: ShowOptions) -> View:
        view = self.resolve_view(view_id)
        if options.new_window:
            window = view.show()
        elif options.window is not None:
            window = view.show(options.window)
        else:
            raise NavigationError(
                f"Cannot show view '{view_id}' in the current window: no window is displayed. "
                "Was the calling view shown inside a window?"
            )
        self._record(DisplayEvent("show", view_id, window))
        logger.debug(f"Showing view '{view_id}' (new window: {options.new_window})")
        return view

    def hide_view(self, view: View) -> None:
        view.hide()
        self._record(DisplayEvent("hide", view.id))

    def attach_nested_view(self, parent: View, child_view_id: str, spec: NestedView) -> View:
        child = self.resolve_view(child_view_id)
        parent.attach_nested(child, spec)
        self._record(DisplayEvent("attach", child_view_id, parent.id))
        logger.debug(f"Attached view '{child_view_id}' into '{parent.id}'")
        return child
