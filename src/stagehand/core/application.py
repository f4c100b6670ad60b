"""The process-wide application facade.

Stagehand owns the container, the enhancer and the view graph of the
running application and moves through three states:

    UNINITIALIZED --build()--> CONFIGURED --scan_for_components()--> INITIALIZED

States only move forward. ``reset()`` discards everything and returns to
UNINITIALIZED.

Example:
    >>> app = (
    ...     Stagehand.builder()
    ...     .scan_package("myapp.controllers")
    ...     .main_view_id("mainView")
    ...     .build()
    ... )
    >>> app.scan_for_components()
    >>> app.display_main_view()
    >>> controller = app.get_controller(MainController)
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass, replace
from enum import Enum
from types import TracebackType
from typing import Any, Callable

from loguru import logger

from ..instrumentation import enhancer_for
from .annotations import Application
from .container import BeanContainer
from .enhancement import EnhancementStrategy, Enhancer
from .errors import ApplicationStateError, ConfigurationError, EnhancementError
from .introspection import find_annotation
from .navigation import ViewNavigator, set_active_navigator
from .ui_thread import UIThread, get_ui_thread
from .views import HeadlessViewGraph, MarkupLoader, ShowOptions, View, ViewGraph, Window
from .wrapper import ControllerWrapper

UncaughtExceptionHandler = Callable[
    [type[BaseException], BaseException, TracebackType | None], None
]


class ApplicationState(Enum):
    UNINITIALIZED = "uninitialized"
    CONFIGURED = "configured"
    INITIALIZED = "initialized"


def log_uncaught_exception(
    exc_type: type[BaseException], exc: BaseException, tb: TracebackType | None
) -> None:
    """Default handler: log the exception with its traceback."""
    logger.opt(exception=(exc_type, exc, tb)).error(f"Uncaught exception: {exc!r}")


@dataclass(frozen=True)
class StagehandConfig:
    """Immutable application configuration produced by StagehandBuilder."""

    scan_package: str = ""
    main_view_id: str = ""
    enhancement_strategy: EnhancementStrategy = EnhancementStrategy.SUBCLASSING
    enhancer: Enhancer | None = None
    uncaught_exception_handler: UncaughtExceptionHandler = log_uncaught_exception
    markup_loader: MarkupLoader | None = None
    view_graph_factory: Callable[[BeanContainer], ViewGraph] | None = None
    ui_thread: UIThread | None = None


class StagehandBuilder:
    """Fluent builder for the application facade.

    >>> app = (
    ...     Stagehand.builder()
    ...     .configuration_class(MyApp)
    ...     .enhancement_strategy(EnhancementStrategy.RUNTIME_INSTRUMENTATION_AGENT)
    ...     .build()
    ... )
    """

    def __init__(self):
        self._config = StagehandConfig()

    def configuration_class(self, cls: type) -> StagehandBuilder:
        """Read scan package and main view id from an @application class."""
        meta = find_annotation(cls, Application)
        if meta is None:
            raise ConfigurationError(f"Class '{cls.__name__}' is not decorated with @application")
        if meta.scan_package:
            self._config = replace(self._config, scan_package=meta.scan_package)
        if meta.main_view_id:
            self._config = replace(self._config, main_view_id=meta.main_view_id)
        return self

    def scan_package(self, package: str) -> StagehandBuilder:
        self._config = replace(self._config, scan_package=package)
        return self

    def main_view_id(self, view_id: str) -> StagehandBuilder:
        self._config = replace(self._config, main_view_id=view_id)
        return self

    def enhancement_strategy(self, strategy: EnhancementStrategy) -> StagehandBuilder:
        self._config = replace(self._config, enhancement_strategy=strategy)
        return self

    def enhancer(self, enhancer: Enhancer) -> StagehandBuilder:
        self._config = replace(self._config, enhancer=enhancer)
        return self

    def uncaught_exception_handler(self, handler: UncaughtExceptionHandler) -> StagehandBuilder:
        self._config = replace(self._config, uncaught_exception_handler=handler)
        return self

    def markup_loader(self, loader: MarkupLoader) -> StagehandBuilder:
        self._config = replace(self._config, markup_loader=loader)
        return self

    def view_graph(self, factory: Callable[[BeanContainer], ViewGraph]) -> StagehandBuilder:
        """Use ``factory(container)`` instead of the headless view graph."""
        self._config = replace(self._config, view_graph_factory=factory)
        return self

    def ui_thread(self, ui_thread: UIThread) -> StagehandBuilder:
        self._config = replace(self._config, ui_thread=ui_thread)
        return self

    def build(self) -> Stagehand:
        return Stagehand._configure(self._config)


_instance: Stagehand | None = None
_state = ApplicationState.UNINITIALIZED
_state_lock = threading.RLock()


class Stagehand:
    """Facade over the container, enhancer and view graph of one application.

    Instances are created through ``Stagehand.builder().build()`` only; there
    is at most one per process.
    """

    def __init__(self, config: StagehandConfig, enhancer: Enhancer, ui_thread: UIThread):
        self.config = config
        self.enhancer = enhancer
        self.ui_thread = ui_thread
        self.container = BeanContainer(enhancer, config.markup_loader, ui_thread)
        if config.view_graph_factory is not None:
            self.view_graph = config.view_graph_factory(self.container)
        else:
            self.view_graph = HeadlessViewGraph(self.container.get_bean)
        self.navigator = ViewNavigator(self.view_graph, ui_thread)
        self._previous_hooks: tuple[Any, Any] | None = None
        self._scanning = False

    # Lifecycle

    @classmethod
    def builder(cls) -> StagehandBuilder:
        with _state_lock:
            if _instance is not None:
                raise ConfigurationError(
                    "The application has already been built. Call Stagehand.reset() first."
                )
        return StagehandBuilder()

    @classmethod
    def _configure(cls, config: StagehandConfig) -> Stagehand:
        global _instance, _state
        with _state_lock:
            if _instance is not None:
                raise ConfigurationError("The application has already been built")
            enhancer = config.enhancer or enhancer_for(config.enhancement_strategy)
            if config.enhancement_strategy is EnhancementStrategy.RUNTIME_INSTRUMENTATION_AGENT:
                if not enhancer.agent_installed():
                    enhancer.install_agent()
                if not enhancer.agent_installed():
                    raise EnhancementError(
                        "Runtime instrumentation was selected but the instrumentation agent "
                        "could not be installed"
                    )
            instance = cls(config, enhancer, config.ui_thread or get_ui_thread())
            instance._install_exception_handler()
            set_active_navigator(instance.navigator)
            _instance = instance
            _state = ApplicationState.CONFIGURED
        logger.info(f"Application configured ({config.enhancement_strategy.name})")
        return instance

    @classmethod
    def get_instance(cls) -> Stagehand:
        with _state_lock:
            if _instance is None:
                raise ApplicationStateError(
                    "The application has not been built yet. Use Stagehand.builder()",
                    current=_state,
                    expected=ApplicationState.CONFIGURED,
                )
            return _instance

    @classmethod
    def state(cls) -> ApplicationState:
        return _state

    @classmethod
    def is_configured(cls) -> bool:
        return _state is ApplicationState.CONFIGURED

    @classmethod
    def is_initialized(cls) -> bool:
        return _state is ApplicationState.INITIALIZED

    @classmethod
    def reset(cls) -> None:
        """Discard the application and return to UNINITIALIZED."""
        global _instance, _state
        with _state_lock:
            instance, _instance = _instance, None
            _state = ApplicationState.UNINITIALIZED
            set_active_navigator(None)
        if instance is not None:
            instance._restore_exception_handler()
            if instance.config.ui_thread is None:
                instance.ui_thread.shutdown()
            logger.info("Application reset")

    def _install_exception_handler(self) -> None:
        handler = self.config.uncaught_exception_handler
        self._previous_hooks = (sys.excepthook, threading.excepthook)
        sys.excepthook = handler
        threading.excepthook = lambda args: handler(
            args.exc_type, args.exc_value, args.exc_traceback
        )

    def _restore_exception_handler(self) -> None:
        if self._previous_hooks is not None:
            sys.excepthook, threading.excepthook = self._previous_hooks
            self._previous_hooks = None

    def _require(self, expected: ApplicationState) -> None:
        if _state is not expected:
            raise ApplicationStateError(
                f"Operation requires state {expected.name}, current state is {_state.name}",
                current=_state,
                expected=expected,
            )

    def scan_for_components(self) -> None:
        """Populate the container and resolve the main view, then INITIALIZED."""
        global _state
        with _state_lock:
            self._require(ApplicationState.CONFIGURED)
            if self._scanning:
                raise ApplicationStateError("A component scan is already running", current=_state)
            self._scanning = True
        try:
            if self.config.scan_package:
                self.container.populate_container(self.config.scan_package)
            if self.config.main_view_id:
                self._resolve_view(self.config.main_view_id)
        finally:
            self._scanning = False
        with _state_lock:
            self._require(ApplicationState.CONFIGURED)
            _state = ApplicationState.INITIALIZED
        logger.info("Application initialized")

    # Pass-throughs

    def add_controller(self, controller_class: type) -> None:
        """Register a single controller without scanning."""
        if _state is ApplicationState.UNINITIALIZED:
            raise ApplicationStateError(
                "Controllers can only be added to a built application", current=_state
            )
        self.container.add_controller_bean_definition(controller_class)

    def get_bean(self, key: str | type) -> Any:
        self._require(ApplicationState.INITIALIZED)
        return self.container.get_bean(key)

    def get_controller(self, key: str | type) -> Any:
        self._require(ApplicationState.INITIALIZED)
        return self.container.get_bean(key)

    def _resolve_view(self, view_id: str) -> View:
        view = self.container.get_bean(view_id)
        if not isinstance(view, View):
            raise ConfigurationError(
                f"Bean '{view_id}' is not a view (got {type(view).__name__})"
            )
        return view

    def get_view(self, key: str | Any) -> View | None:
        """Return the view with id ``key``, or the view of a controller instance."""
        self._require(ApplicationState.INITIALIZED)
        if isinstance(key, str):
            return self._resolve_view(key)
        return ControllerWrapper.get_view_from(key)

    def show_view(self, view_id: str, window: Window | None = None) -> View:
        """Show a view in ``window``, or in a new window when omitted."""
        self._require(ApplicationState.INITIALIZED)
        options = ShowOptions(new_window=window is None, window=window)
        return self.ui_thread.run_and_wait(self.view_graph.show_view, view_id, options)

    def display_main_view(self, window: Window | None = None) -> View:
        if not self.config.main_view_id:
            raise ConfigurationError("No main view id has been configured")
        return self.show_view(self.config.main_view_id, window)

    def hide_view(self, key: str | Any) -> None:
        """Hide the view with id ``key``, or the view of a controller instance."""
        view = self.get_view(key)
        if view is not None:
            self.ui_thread.run_and_wait(self.view_graph.hide_view, view)
