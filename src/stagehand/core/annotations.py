"""Declarative metadata records and the decorators that attach them.

Annotations are plain frozen dataclasses stored on the decorated class or
function under a single attribute. They are read, never re-parsed: every
decorator builds its record once at definition time and the rest of the
framework looks the record up by its type.

Decorators:
    @component: Mark a class as a managed bean
    @controller: Mark a class as a bean paired with a view
    @show_view: Navigate to a view after the method body completes
    @post_construct: Run a method once injection has finished
    @application: Describe the scan root and main view of an application

Fields:
    inject(): Default value marking a class attribute for injection
    Inject: Metadata usable inside ``typing.Annotated``

Example:
    >>> @controller(view_id="mainView", markup="/views/main.view")
    ... class MainController:
    ...     service: Annotated[GreetingService, Inject()]
    ...
    ...     @show_view(view_id="detailView")
    ...     def open_details(self):
    ...         return "opened"

Classes decorated with @component or @controller are announced to the
registered class listeners as they are defined. The runtime
instrumentation agent uses this to transform controllers at load time.
"""

from __future__ import annotations

import inspect
import threading
import weakref
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

T = TypeVar("T")

METADATA_ATTR = "__stagehand_metadata__"


@dataclass(frozen=True)
class Component:
    """A class whose lifecycle is owned by the bean container."""

    id: str | None = None
    singleton: bool = True
    lazy_init: bool = True


@dataclass(frozen=True)
class NestedView:
    """Where a nested view is attached inside its parent view."""

    ref_view_id: str
    attach_to_node_id: str = ""
    attach_to_index: int = -1
    attach_to_column: int = -1
    attach_to_row: int = -1
    attach_to_position: str = ""


@dataclass(frozen=True)
class Controller:
    """A managed component paired with exactly one view."""

    view_id: str
    markup: str = ""
    singleton: bool = True
    lazy_init: bool = True
    title: str = ""
    width: int = 200
    height: int = 100
    pos_x: int = -1
    pos_y: int = -1
    maximized: bool = False
    modal: bool = False
    icon: str = ""
    stylesheets: tuple[str, ...] = ()
    nested_views: tuple[NestedView, ...] = ()


@dataclass(frozen=True)
class Inject:
    """Field-level request for a dependency, by explicit id or by type."""

    id: str | None = None


class MethodInterceptable:
    """Mixin for method records whose methods must be enhanced."""


@dataclass(frozen=True)
class ShowView(MethodInterceptable):
    """Navigation to perform once the annotated method returns normally.

    A non-empty ``view_id`` wins over ``nested_views``.
    """

    view_id: str = ""
    show_in_new_window: bool = False
    nested_views: tuple[NestedView, ...] = ()


@dataclass(frozen=True)
class PostConstruct:
    """Method invoked after all dependencies have been injected."""


@dataclass(frozen=True)
class Application:
    """Configuration-class metadata consumed by the facade builder."""

    scan_package: str = ""
    main_view_id: str = ""


def attach_metadata(target: Any, record: Any) -> Any:
    """Attach ``record`` to ``target``, replacing a record of the same type."""
    store = vars(target).get(METADATA_ATTR)
    if store is None:
        store = {}
        setattr(target, METADATA_ATTR, store)
    store[type(record)] = record
    return target


def own_metadata(target: Any, record_type: type[T]) -> T | None:
    """Return the record of ``record_type`` declared directly on ``target``."""
    try:
        store = vars(target).get(METADATA_ATTR)
    except TypeError:
        return None
    if not store:
        return None
    return store.get(record_type)


def all_own_metadata(target: Any) -> list[Any]:
    try:
        store = vars(target).get(METADATA_ATTR)
    except TypeError:
        return []
    return list(store.values()) if store else []


# Class definition listeners

_listeners: list[Callable[[type], None]] = []
_defined_classes: weakref.WeakSet = weakref.WeakSet()
_listener_lock = threading.RLock()


def add_class_listener(listener: Callable[[type], None]) -> None:
    with _listener_lock:
        if listener not in _listeners:
            _listeners.append(listener)


def remove_class_listener(listener: Callable[[type], None]) -> None:
    with _listener_lock:
        if listener in _listeners:
            _listeners.remove(listener)


def defined_classes() -> list[type]:
    """Managed classes defined so far in this process."""
    with _listener_lock:
        return list(_defined_classes)


def _announce(cls: type) -> None:
    with _listener_lock:
        _defined_classes.add(cls)
        listeners = list(_listeners)
    for listener in listeners:
        listener(cls)


def _require_class(target: Any, decorator: str) -> None:
    if not inspect.isclass(target):
        raise TypeError(f"@{decorator} can only be applied to classes")


def component(
    cls: type[T] | None = None,
    *,
    id: str | None = None,
    singleton: bool = True,
    lazy_init: bool = True,
) -> type[T] | Callable[[type[T]], type[T]]:
    """Mark a class as a managed component.

    Args:
        cls: The class (when used without parentheses)
        id: Bean id, derived from the class name when omitted
        singleton: Whether one shared instance is cached
        lazy_init: Whether construction waits until first lookup

    Examples:
        >>> @component
        ... class Repository:
        ...     pass

        >>> @component(id="clock", singleton=False)
        ... class Clock:
        ...     pass
    """
    def decorator(cls: type[T]) -> type[T]:
        _require_class(cls, "component")
        attach_metadata(cls, Component(id=id, singleton=singleton, lazy_init=lazy_init))
        _announce(cls)
        return cls

    if cls is None:
        return decorator
    return decorator(cls)


def controller(
    *,
    view_id: str,
    markup: str = "",
    singleton: bool = True,
    lazy_init: bool = True,
    title: str = "",
    width: int = 200,
    height: int = 100,
    pos_x: int = -1,
    pos_y: int = -1,
    maximized: bool = False,
    modal: bool = False,
    icon: str = "",
    stylesheets: tuple[str, ...] | list[str] = (),
    nested_views: tuple[NestedView, ...] | list[NestedView] = (),
) -> Callable[[type[T]], type[T]]:
    """Mark a class as a controller owning the view ``view_id``.

    The view id must differ from the controller's own bean id, which is
    derived from the class name.
    """
    def decorator(cls: type[T]) -> type[T]:
        _require_class(cls, "controller")
        record = Controller(
            view_id=view_id,
            markup=markup,
            singleton=singleton,
            lazy_init=lazy_init,
            title=title,
            width=width,
            height=height,
            pos_x=pos_x,
            pos_y=pos_y,
            maximized=maximized,
            modal=modal,
            icon=icon,
            stylesheets=tuple(stylesheets),
            nested_views=tuple(nested_views),
        )
        attach_metadata(cls, record)
        _announce(cls)
        return cls

    return decorator


def inject(id: str | None = None) -> Any:
    """Class attribute default marking a field for injection.

    >>> class Screen:
    ...     repository: Repository = inject()
    ...     clock: Clock = inject(id="clock")
    """
    return Inject(id=id)


def show_view(
    func: Callable | None = None,
    *,
    view_id: str = "",
    show_in_new_window: bool = False,
    nested_views: tuple[NestedView, ...] | list[NestedView] = (),
) -> Callable:
    """Navigate to ``view_id`` (or attach ``nested_views``) after the method returns."""
    def decorator(func: Callable) -> Callable:
        if not callable(func):
            raise TypeError("@show_view can only be applied to methods")
        attach_metadata(
            func,
            ShowView(
                view_id=view_id,
                show_in_new_window=show_in_new_window,
                nested_views=tuple(nested_views),
            ),
        )
        return func

    if func is None:
        return decorator
    return decorator(func)


def post_construct(func: Callable) -> Callable:
    """Mark a method to be invoked after field injection."""
    attach_metadata(func, PostConstruct())
    return func


def application(
    cls: type[T] | None = None, *, scan_package: str = "", main_view_id: str = ""
) -> type[T] | Callable[[type[T]], type[T]]:
    """Attach application configuration to a class read by ``Stagehand.builder()``."""
    def decorator(cls: type[T]) -> type[T]:
        _require_class(cls, "application")
        attach_metadata(cls, Application(scan_package=scan_package, main_view_id=main_view_id))
        return cls

    if cls is None:
        return decorator
    return decorator(cls)

