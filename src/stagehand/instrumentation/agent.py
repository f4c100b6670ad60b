"""Process-wide instrumentation agent.

Once installed, the agent rewrites every controller class in place: each
annotated method is replaced by its intercepted wrapper and the class gains
the view field. Classes defined after installation are rewritten as their
@controller decorator runs. Classes defined before installation are
rewritten during installation.

The agent is global to the process. ``uninstall_agent`` restores every
rewritten class, which keeps test runs independent of each other.
"""

from __future__ import annotations

import threading
from typing import Any

from loguru import logger

from ..core.annotations import Controller, add_class_listener, defined_classes, remove_class_listener
from ..core.enhancement import (
    INSTRUMENTED_MARKER,
    VIEW_FIELD_NAME,
    Enhancer,
    can_hold_view,
    interceptable_methods,
    is_intercepted,
    require_view_holder,
)
from ..core.errors import EnhancementError
from ..core.introspection import find_annotation
from .interceptors import intercepted

_ABSENT = object()

_lock = threading.RLock()
_installed = False
_transformed: dict[type, dict[str, Any]] = {}


def agent_installed() -> bool:
    return _installed


def install_agent() -> None:
    """Install the agent and rewrite the controllers defined so far."""
    global _installed
    with _lock:
        if _installed:
            return
        add_class_listener(_on_class_defined)
        _installed = True
        existing = [cls for cls in defined_classes() if _is_controller(cls)]
        for cls in existing:
            transform(cls)
    logger.info(f"Instrumentation agent installed, {len(existing)} existing controller(s) rewritten")


def uninstall_agent() -> None:
    """Remove the agent and restore every rewritten class."""
    global _installed
    with _lock:
        if not _installed:
            return
        remove_class_listener(_on_class_defined)
        for cls, originals in _transformed.items():
            for name, original in originals.items():
                if original is _ABSENT:
                    delattr(cls, name)
                else:
                    setattr(cls, name, original)
        restored = len(_transformed)
        _transformed.clear()
        _installed = False
    logger.info(f"Instrumentation agent uninstalled, {restored} class(es) restored")


def _is_controller(cls: type) -> bool:
    return find_annotation(cls, Controller) is not None


def _on_class_defined(cls: type) -> None:
    if _is_controller(cls):
        transform(cls)


def transform(cls: type) -> type:
    """Rewrite ``cls`` in place. Rewriting the same class twice is a no-op."""
    with _lock:
        if not _installed:
            raise EnhancementError("The instrumentation agent is not installed")
        if cls in _transformed:
            return cls
        originals: dict[str, Any] = {}
        try:
            for method in interceptable_methods(cls):
                if is_intercepted(method):
                    continue
                originals[method.__name__] = vars(cls).get(method.__name__, _ABSENT)
                setattr(cls, method.__name__, intercepted(method))
            if not hasattr(cls, VIEW_FIELD_NAME) and can_hold_view(cls):
                originals[VIEW_FIELD_NAME] = _ABSENT
                setattr(cls, VIEW_FIELD_NAME, None)
            originals[INSTRUMENTED_MARKER] = vars(cls).get(INSTRUMENTED_MARKER, _ABSENT)
            setattr(cls, INSTRUMENTED_MARKER, True)
        except (AttributeError, TypeError) as e:
            raise EnhancementError(f"Class '{cls.__name__}' cannot be instrumented: {e}") from e
        _transformed[cls] = originals
    logger.debug(f"Instrumented {cls.__name__}")
    return cls


class RuntimeAgentEnhancer(Enhancer):
    """Enhancer relying on the agent having rewritten classes in place.

    ``enhance_class`` returns the class itself. A class that has not been
    rewritten yet (for example an undecorated subclass) is rewritten on
    demand. Classes whose instances cannot hold the view field are
    rejected, as they are by subclassing.
    """

    def install_agent(self) -> None:
        install_agent()

    def agent_installed(self) -> bool:
        return agent_installed()

    def enhance_class(self, cls: type) -> type:
        if not agent_installed():
            raise EnhancementError(
                f"Cannot enhance '{cls.__name__}': the instrumentation agent is not installed"
            )
        require_view_holder(cls)
        return transform(cls)
