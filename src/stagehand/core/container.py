"""The bean container: definitions, resolution, injection and singletons.

A BeanContainer maps bean ids to immutable BeanDefinitions and realizes
beans on demand:

    1. the definition's supplier produces the raw instance (for controllers
       this includes view creation and view injection)
    2. fields marked with Inject are filled from the container
    3. methods marked with @post_construct are invoked

Singleton definitions are realized at most once. Non-singleton definitions
call their supplier on every lookup.

Thread Safety:
    Registration and the singleton cache are guarded by a container lock.
    Each singleton definition has its own creation lock, held while the
    bean is being realized, so concurrent lookups of the same id invoke
    the supplier exactly once. All realization is marshalled onto the
    container's UI thread (the process-wide one unless another is given),
    so creation locks are only ever taken on that thread and no lock is
    held while waiting for it.

Circular Dependencies:
    The ids being realized on the current thread are tracked. A bean that
    is requested again while it is still being built raises
    CircularDependencyError naming the full cycle.
"""

from __future__ import annotations

import inspect
import threading
from dataclasses import dataclass
from typing import Any, Callable, TypeVar
from weakref import WeakKeyDictionary

from loguru import logger

from .annotations import Component, Controller, Inject, PostConstruct, own_metadata
from .discovery import ComponentDiscoverer
from .enhancement import Enhancer
from .errors import (
    AmbiguousBeanError,
    CircularDependencyError,
    ConstructionError,
    DefinitionError,
    DuplicateBeanError,
    InvocationError,
    NoSuchBeanError,
    StagehandError,
    UnresolvableDependencyError,
)
from .instantiation import ConstructorBasedInstantiationSupplier, ControllerInstantiationSupplier
from .introspection import (
    FieldInfo,
    find_annotated_fields,
    find_annotation,
    invoke_methods_with_annotation,
    set_field_value,
)
from .ui_thread import UIThread, get_ui_thread
from .views import BasicMarkupLoader, MarkupLoader, View
from .wrapper import ControllerWrapper

T = TypeVar("T")

_MISSING = object()


def derive_bean_id(cls: type) -> str:
    """Bean id for ``cls``: its name with the first letter in lower case."""
    name = cls.__name__
    return name[:1].lower() + name[1:]


@dataclass(frozen=True)
class BeanDefinition:
    """How to produce one bean. Never modified once registered."""

    id: str
    bean_type: type
    singleton: bool
    supplier: Callable[[], Any]
    lazy_init: bool = True


class BeanContainer:
    """Registry and factory for managed beans.

    Args:
        enhancer: Enhancer used for controller classes. Required before
            controllers can be registered.
        markup_loader: Loader for controller views
        ui_thread: Thread realizing beans; the process-wide UI thread when
            omitted

    Examples:
        >>> container = BeanContainer()
        >>> container.add_bean_definition("svc", Service, True, Service)
        >>> container.get_bean("svc") is container.get_bean(Service)
        True
    """

    def __init__(
        self,
        enhancer: Enhancer | None = None,
        markup_loader: MarkupLoader | None = None,
        ui_thread: UIThread | None = None,
    ):
        self.enhancer = enhancer
        self.markup_loader = markup_loader or BasicMarkupLoader()
        self.ui_thread = ui_thread or get_ui_thread()
        self._definitions: dict[str, BeanDefinition] = {}
        self._singletons: dict[str, Any] = {}
        self._creation_locks: dict[str, threading.RLock] = {}
        self._lock = threading.RLock()
        self._resolving = threading.local()
        self._injection_points: WeakKeyDictionary = WeakKeyDictionary()

    # Registration

    def add_bean_definition(
        self,
        bean_id: str,
        bean_type: type,
        singleton: bool,
        supplier: Callable[[], Any],
        lazy_init: bool = True,
    ) -> BeanDefinition:
        """Register a definition. Fails with DuplicateBeanError if the id is taken."""
        definition = BeanDefinition(bean_id, bean_type, singleton, supplier, lazy_init)
        with self._lock:
            if bean_id in self._definitions:
                raise DuplicateBeanError(bean_id)
            self._definitions[bean_id] = definition
            if singleton:
                self._creation_locks[bean_id] = threading.RLock()
        logger.debug(
            f"Registered bean '{bean_id}' ({bean_type.__name__}, "
            f"{'singleton' if singleton else 'prototype'})"
        )
        return definition

    def add_component_bean_definition(self, cls: type) -> BeanDefinition:
        """Register ``cls`` using its @component record, or the defaults without one."""
        meta = find_annotation(cls, Component) or Component()
        return self.add_bean_definition(
            meta.id or derive_bean_id(cls),
            cls,
            meta.singleton,
            ConstructorBasedInstantiationSupplier(cls),
            meta.lazy_init,
        )

    def add_controller_bean_definition(self, cls: type) -> BeanDefinition:
        """Register a controller and a second definition for its view.

        The view is registered under the controller's view id and is taken
        from the controller bean, so both share one lifecycle.
        """
        meta = find_annotation(cls, Controller)
        if meta is None:
            raise DefinitionError(f"Class '{cls.__name__}' is not decorated with @controller")
        if self.enhancer is None:
            raise DefinitionError(
                f"Cannot register controller '{cls.__name__}': no enhancer configured"
            )
        controller_id = derive_bean_id(cls)
        if controller_id == meta.view_id:
            raise DefinitionError(
                f"View id '{meta.view_id}' of '{cls.__name__}' collides with its bean id"
            )
        supplier = ControllerInstantiationSupplier(
            cls,
            self.enhancer,
            self.markup_loader,
            ui_thread=self.ui_thread,
            view_resolver=self.get_bean,
        )
        with self._lock:
            if meta.view_id in self._definitions:
                raise DuplicateBeanError(meta.view_id)
            definition = self.add_bean_definition(
                controller_id, cls, meta.singleton, supplier, meta.lazy_init
            )
            self.add_bean_definition(
                meta.view_id,
                View,
                meta.singleton,
                lambda: ControllerWrapper.get_view_from(self.get_bean(controller_id)),
                meta.lazy_init,
            )
        return definition

    def populate_container(self, root_package: str) -> list[BeanDefinition]:
        """Register every managed class found under ``root_package``.

        Non-lazy singletons are realized once all classes are registered.
        """
        registered = []
        for cls in ComponentDiscoverer().discover_package(root_package):
            if own_metadata(cls, Controller) is not None:
                registered.append(self.add_controller_bean_definition(cls))
            else:
                registered.append(self.add_component_bean_definition(cls))
        logger.info(f"Component scan of '{root_package}' registered {len(registered)} bean(s)")
        self.instantiate_non_lazy_beans()
        return registered

    def instantiate_non_lazy_beans(self) -> None:
        with self._lock:
            eager = [d.id for d in self._definitions.values() if d.singleton and not d.lazy_init]
        for bean_id in eager:
            self.get_bean(bean_id)

    # Lookup

    def has_bean(self, key: str | type) -> bool:
        with self._lock:
            if isinstance(key, str):
                return key in self._definitions
            return bool(self._assignable_definitions(key))

    __contains__ = has_bean

    def get_bean_definition(self, bean_id: str) -> BeanDefinition:
        with self._lock:
            definition = self._definitions.get(bean_id)
        if definition is None:
            raise NoSuchBeanError(bean_id)
        return definition

    @property
    def bean_definitions(self) -> list[BeanDefinition]:
        with self._lock:
            return list(self._definitions.values())

    def _assignable_definitions(self, bean_type: type) -> list[BeanDefinition]:
        return [
            definition
            for definition in self._definitions.values()
            if inspect.isclass(definition.bean_type) and issubclass(definition.bean_type, bean_type)
        ]

    def _find_definition(self, key: str | type) -> BeanDefinition:
        if isinstance(key, str):
            return self.get_bean_definition(key)
        with self._lock:
            candidates = self._assignable_definitions(key)
        if not candidates:
            raise NoSuchBeanError(key)
        if len(candidates) > 1:
            raise AmbiguousBeanError(key, [definition.id for definition in candidates])
        return candidates[0]

    def get_bean(self, key: str | type[T]) -> T:
        """Return the bean registered under an id, or the unique bean of a type."""
        definition = self._find_definition(key)
        if definition.singleton:
            instance = self._singletons.get(definition.id, _MISSING)
            if instance is not _MISSING:
                return instance
        return self.ui_thread.run_and_wait(self._realize, definition)

    # Realization

    def _resolving_stack(self) -> list[str]:
        stack = getattr(self._resolving, "stack", None)
        if stack is None:
            stack = self._resolving.stack = []
        return stack

    def _realize(self, definition: BeanDefinition) -> Any:
        if not definition.singleton:
            return self._create(definition)
        with self._creation_locks[definition.id]:
            instance = self._singletons.get(definition.id, _MISSING)
            if instance is not _MISSING:
                return instance
            instance = self._create(definition)
            with self._lock:
                self._singletons[definition.id] = instance
            return instance

    def _create(self, definition: BeanDefinition) -> Any:
        stack = self._resolving_stack()
        if definition.id in stack:
            raise CircularDependencyError([*stack[stack.index(definition.id):], definition.id])
        stack.append(definition.id)
        try:
            try:
                instance = definition.supplier()
            except StagehandError:
                raise
            except Exception as e:
                raise ConstructionError(
                    f"Supplier of bean '{definition.id}' failed: {e}",
                    bean_type=definition.bean_type,
                    cause=e,
                ) from e
            self.inject_dependencies(instance)
            self._post_construct(instance, definition)
        finally:
            stack.pop()
        logger.debug(f"Realized bean '{definition.id}'")
        return instance

    def _post_construct(self, instance: Any, definition: BeanDefinition) -> None:
        try:
            invoke_methods_with_annotation(instance, PostConstruct)
        except InvocationError as e:
            raise ConstructionError(
                f"Post-construct of bean '{definition.id}' failed: {e.cause}",
                bean_type=definition.bean_type,
                cause=e.cause,
            ) from e

    # Injection

    def _fields_to_inject(self, cls: type) -> list[FieldInfo]:
        fields = self._injection_points.get(cls)
        if fields is None:
            fields = find_annotated_fields(cls, Inject)
            self._injection_points[cls] = fields
        return fields

    def inject_dependencies(self, instance: Any) -> None:
        """Fill every Inject field of ``instance`` from the container.

        A field resolves, in order: to the controller's own view when the
        field name or explicit id is its view id; to the bean with the
        explicit id; to the unique bean assignable to the field type; or,
        when several are assignable, to the one whose id is the field name.
        """
        cls = type(instance)
        controller = find_annotation(cls, Controller)
        for field in self._fields_to_inject(cls):
            value = self._resolve_field(instance, cls, field, controller)
            set_field_value(instance, field.name, value)
            logger.debug(f"Injected {cls.__name__}.{field.name}")

    def _resolve_field(
        self, instance: Any, cls: type, field: FieldInfo, controller: Controller | None
    ) -> Any:
        marker: Inject = field.annotation(Inject)
        if controller is not None and controller.view_id in (marker.id, field.name):
            view = ControllerWrapper.get_view_from(instance)
            if view is not None:
                return view
        if marker.id:
            if not self.has_bean(marker.id):
                raise UnresolvableDependencyError(cls, field.name, field.type, bean_id=marker.id)
            return self.get_bean(marker.id)

        field_type = field.base_type
        if not inspect.isclass(field_type):
            raise UnresolvableDependencyError(cls, field.name, field.type)
        with self._lock:
            candidates = self._assignable_definitions(field_type)
        if len(candidates) > 1:
            named = [definition for definition in candidates if definition.id == field.name]
            if not named:
                raise AmbiguousBeanError(field_type, [definition.id for definition in candidates])
            candidates = named
        if not candidates:
            raise UnresolvableDependencyError(cls, field.name, field_type)
        return self.get_bean(candidates[0].id)
