"""Suppliers producing one instance of a bean type on demand.

ConstructorBasedInstantiationSupplier calls the zero-argument constructor.
ControllerInstantiationSupplier additionally enhances the controller class
(once, then cached), builds the controller's view on the UI thread and
stores it in the view field before returning the instance.
"""

from __future__ import annotations

import inspect
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, TypeVar

from loguru import logger

from .annotations import Controller
from .enhancement import Enhancer
from .errors import ConstructionError, EnhancementError, NoAccessibleConstructorError, StagehandError
from .introspection import find_annotation
from .ui_thread import UIThread, get_ui_thread
from .views import MarkupLoader, View
from .wrapper import ControllerWrapper

T = TypeVar("T")


class InstantiationSupplier(ABC, Generic[T]):
    """Zero-argument factory for one bean type."""

    def __init__(self, bean_type: type[T]):
        self.bean_type = bean_type

    def __call__(self) -> T:
        return self.create_instance()

    @abstractmethod
    def create_instance(self) -> T:
        ...


def _has_no_arg_constructor(cls: type) -> bool:
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return True
    return all(
        parameter.default is not inspect.Parameter.empty
        or parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        for parameter in signature.parameters.values()
    )


class ConstructorBasedInstantiationSupplier(InstantiationSupplier[T]):
    """Creates instances through the class's no-argument constructor."""

    def create_instance(self) -> T:
        return self._construct(self.bean_type)

    def _construct(self, cls: type) -> Any:
        if inspect.isabstract(cls) or not _has_no_arg_constructor(cls):
            raise NoAccessibleConstructorError(cls)
        try:
            return cls()
        except StagehandError:
            raise
        except Exception as e:
            raise ConstructionError(
                f"Construction of '{cls.__name__}' failed: {e}", bean_type=cls, cause=e
            ) from e


class ControllerInstantiationSupplier(ConstructorBasedInstantiationSupplier[T]):
    """Creates a controller and injects its freshly loaded view.

    Args:
        controller_class: Class decorated with @controller
        enhancer: Enhancer preparing the class for interception
        markup_loader: Loads the object tree for the controller's markup
        ui_thread: Thread running view construction; the process-wide
            UI thread when omitted
        view_resolver: Resolves nested views by id, normally the
            container's ``get_bean``
    """

    def __init__(
        self,
        controller_class: type[T],
        enhancer: Enhancer,
        markup_loader: MarkupLoader,
        ui_thread: UIThread | None = None,
        view_resolver: Callable[[str], Any] | None = None,
    ):
        super().__init__(controller_class)
        self.metadata: Controller | None = find_annotation(controller_class, Controller)
        if self.metadata is None:
            raise EnhancementError(
                f"Class '{controller_class.__name__}' is not decorated with @controller"
            )
        self.enhancer = enhancer
        self.markup_loader = markup_loader
        self.ui_thread = ui_thread
        self.view_resolver = view_resolver
        self._prepared: type | None = None
        self._prepare_lock = threading.Lock()

    def prepare_controller_class(self) -> type:
        """Enhance the controller class once and cache the result."""
        with self._prepare_lock:
            if self._prepared is None:
                self._prepared = self.enhancer.enhance_class(self.bean_type)
                logger.debug(f"Prepared controller class {self._prepared.__name__}")
            return self._prepared

    def create_instance(self) -> T:
        cls = self.prepare_controller_class()
        ui_thread = self.ui_thread or get_ui_thread()
        return ui_thread.run_and_wait(self._create_in_ui_thread, cls)

    def _create_in_ui_thread(self, cls: type) -> Any:
        controller = self._construct(cls)
        try:
            view = self.create_view(controller)
        except StagehandError:
            raise
        except Exception as e:
            raise ConstructionError(
                f"Loading the view of '{cls.__name__}' failed: {e}", bean_type=cls, cause=e
            ) from e
        ControllerWrapper.set_view_on(controller, view)
        if self.metadata.nested_views and self.view_resolver is not None:
            for spec in self.metadata.nested_views:
                view.attach_nested(self.view_resolver(spec.ref_view_id), spec)
        return controller

    def create_view(self, controller: Any) -> View:
        meta = self.metadata
        root = self.markup_loader.load_view(meta.markup, controller)
        return View(
            id=meta.view_id,
            root=root,
            controller=controller,
            title=meta.title,
            width=meta.width,
            height=meta.height,
            pos_x=meta.pos_x,
            pos_y=meta.pos_y,
            maximized=meta.maximized,
            modal=meta.modal,
            icon=meta.icon,
            stylesheets=meta.stylesheets,
        )
