"""Translate navigation metadata into view graph calls.

A ViewNavigator is bound to one view graph. The facade publishes its
navigator as the active one so that intercepted methods, which only know
their controller instance, can reach it.
"""

from __future__ import annotations

import threading
from typing import Any

from loguru import logger

from .annotations import ShowView
from .errors import NavigationError
from .ui_thread import UIThread
from .views import ShowOptions, ViewGraph
from .wrapper import ControllerWrapper


class ViewNavigator:
    """Performs the show or nested-attach action requested by a ShowView record.

    A non-empty ``view_id`` shows that view, either in a new window or in
    the window currently displaying the calling controller's view. Otherwise
    each nested view is attached into the controller's view.
    """

    def __init__(self, view_graph: ViewGraph, ui_thread: UIThread | None = None):
        self.view_graph = view_graph
        self.ui_thread = ui_thread

    def navigate(self, controller: Any, action: ShowView) -> None:
        if self.ui_thread is not None:
            self.ui_thread.run_and_wait(self._navigate, controller, action)
        else:
            self._navigate(controller, action)

    def _navigate(self, controller: Any, action: ShowView) -> None:
        if action.view_id:
            if action.show_in_new_window:
                options = ShowOptions(new_window=True)
            else:
                options = ShowOptions(window=ControllerWrapper(controller).window)
            logger.debug(f"{type(controller).__name__} navigates to view '{action.view_id}'")
            self.view_graph.show_view(action.view_id, options)
        elif action.nested_views:
            parent = ControllerWrapper.get_view_from(controller)
            if parent is None:
                raise NavigationError(
                    f"Controller '{type(controller).__name__}' has no view to attach nested views to"
                )
            for spec in action.nested_views:
                self.view_graph.attach_nested_view(parent, spec.ref_view_id, spec)


_active_navigator: ViewNavigator | None = None
_active_lock = threading.Lock()


def set_active_navigator(navigator: ViewNavigator | None) -> None:
    global _active_navigator
    with _active_lock:
        _active_navigator = navigator


def get_active_navigator() -> ViewNavigator:
    """Return the navigator of the running application."""
    with _active_lock:
        navigator = _active_navigator
    if navigator is None:
        raise NavigationError("No navigator is active. Has the application been built?")
    return navigator
