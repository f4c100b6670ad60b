"""Enhancement by generating a subclass per controller class."""

from __future__ import annotations

import threading

from loguru import logger

from ..core.enhancement import (
    ENHANCED_MARKER,
    ENHANCED_SUFFIX,
    ORIGINAL_CLASS_ATTR,
    VIEW_FIELD_NAME,
    Enhancer,
    interceptable_methods,
    is_enhanced_class,
    is_intercepted,
    require_view_holder,
)
from ..core.errors import EnhancementError
from . import agent
from .interceptors import intercepted


class SubclassingEnhancer(Enhancer):
    """Generates, on first request, a subclass overriding each annotated method.

    The generated class is named ``<Original>__Enhanced``, declares the view
    field and is cached, so enhancing the same class again returns the same
    type. Methods that are already intercepted (because the agent rewrote
    the class) are inherited as they are.

    Agent queries delegate to the process-wide agent so that the agent
    state can be checked whichever strategy is configured.
    """

    def __init__(self):
        self._cache: dict[type, type] = {}
        self._lock = threading.RLock()

    def install_agent(self) -> None:
        agent.install_agent()

    def agent_installed(self) -> bool:
        return agent.agent_installed()

    def enhance_class(self, cls: type) -> type:
        if vars(cls).get(ENHANCED_MARKER):
            return cls
        with self._lock:
            enhanced = self._cache.get(cls)
            if enhanced is not None:
                logger.debug(f"Enhancement cache hit for {cls.__name__}")
                return enhanced
            enhanced = self._generate(cls)
            self._cache[cls] = enhanced
            return enhanced

    def _generate(self, cls: type) -> type:
        require_view_holder(cls)
        if getattr(cls, "__final__", False):
            raise EnhancementError(f"Class '{cls.__name__}' is final and cannot be subclassed")
        namespace = {
            "__module__": cls.__module__,
            "__qualname__": f"{cls.__qualname__}{ENHANCED_SUFFIX}",
            "__doc__": cls.__doc__,
            ENHANCED_MARKER: True,
            ORIGINAL_CLASS_ATTR: cls,
        }
        if not hasattr(cls, VIEW_FIELD_NAME):
            namespace[VIEW_FIELD_NAME] = None
        overridden = []
        for method in interceptable_methods(cls):
            if is_intercepted(method):
                continue
            namespace[method.__name__] = intercepted(method)
            overridden.append(method.__name__)
        try:
            enhanced = type(f"{cls.__name__}{ENHANCED_SUFFIX}", (cls,), namespace)
        except TypeError as e:
            raise EnhancementError(f"Class '{cls.__name__}' cannot be subclassed: {e}") from e
        logger.debug(f"Generated {enhanced.__name__} overriding {overridden or 'no methods'}")
        return enhanced

    def is_enhanced(self, cls: type) -> bool:
        return is_enhanced_class(cls)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
