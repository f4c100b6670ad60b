"""Uniform access to the view held by a controller instance."""

from __future__ import annotations

from typing import Any

from .enhancement import VIEW_FIELD_NAME
from .errors import EnhancementError
from .views import View, Window


class ControllerWrapper:
    """Accessor for a controller's injected view and the window showing it.

    Works the same for generated subclasses and instrumented classes, since
    both declare the view field under VIEW_FIELD_NAME.

    >>> wrapper = ControllerWrapper(controller)
    >>> wrapper.view = view
    >>> wrapper.window is view.window
    True
    """

    def __init__(self, controller: Any):
        if not hasattr(type(controller), VIEW_FIELD_NAME):
            raise EnhancementError(
                f"Controller '{type(controller).__name__}' has no '{VIEW_FIELD_NAME}' field. "
                "Has the class been enhanced?"
            )
        self.controller = controller

    @property
    def view(self) -> View | None:
        return getattr(self.controller, VIEW_FIELD_NAME)

    @view.setter
    def view(self, view: View | None) -> None:
        setattr(self.controller, VIEW_FIELD_NAME, view)

    @property
    def window(self) -> Window | None:
        view = self.view
        return view.window if view is not None else None

    @property
    def scene(self) -> Any:
        window = self.window
        return window.scene if window is not None else None

    @staticmethod
    def of(controller: Any) -> ControllerWrapper:
        return ControllerWrapper(controller)

    @staticmethod
    def get_view_from(controller: Any) -> View | None:
        return ControllerWrapper(controller).view

    @staticmethod
    def set_view_on(controller: Any, view: View) -> None:
        ControllerWrapper(controller).view = view
