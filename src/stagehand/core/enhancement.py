"""Enhancer interface, strategy selection and enhancement markers.

An enhancer makes the navigation-annotated methods of a controller class
interceptable and gives the class a stable field for its view. Two
strategies exist and are chosen once per process:

    SUBCLASSING                    - generate and cache a subclass per class
    RUNTIME_INSTRUMENTATION_AGENT  - rewrite classes in place as they are
                                     defined, once a process-wide agent is
                                     installed

Both produce the same observable behaviour. Enhanced subclasses are
recognisable by ENHANCED_MARKER and the ENHANCED_SUFFIX on their name;
instrumented classes carry INSTRUMENTED_MARKER instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from types import MemberDescriptorType
from typing import Any, Callable

from .annotations import METADATA_ATTR, MethodInterceptable
from .errors import EnhancementError
from .introspection import find_all_public_methods

VIEW_FIELD_NAME = "_view"

ENHANCED_SUFFIX = "__Enhanced"
ENHANCED_MARKER = "__stagehand_enhanced__"
ORIGINAL_CLASS_ATTR = "__stagehand_original__"
INSTRUMENTED_MARKER = "__stagehand_instrumented__"
INTERCEPTED_MARKER = "__stagehand_intercepted__"


class EnhancementStrategy(Enum):
    SUBCLASSING = "subclassing"
    RUNTIME_INSTRUMENTATION_AGENT = "runtime_instrumentation_agent"


class Enhancer(ABC):
    """Capability to make annotated controller methods interceptable."""

    @abstractmethod
    def install_agent(self) -> None:
        """Install the process-wide instrumentation agent."""

    @abstractmethod
    def agent_installed(self) -> bool:
        """Whether the instrumentation agent is active, whatever the strategy."""

    @abstractmethod
    def enhance_class(self, cls: type) -> type:
        """Return a class whose annotated methods run through the interceptor."""

    def is_enhanced(self, cls: type) -> bool:
        return is_enhanced_class(cls)


def is_enhanced_class(cls: type) -> bool:
    """Whether ``cls`` is a generated subclass or an instrumented class."""
    return bool(vars(cls).get(ENHANCED_MARKER)) or bool(vars(cls).get(INSTRUMENTED_MARKER))


def can_hold_view(cls: type) -> bool:
    """Whether instances of ``cls`` can store the view field.

    Instances of a class whose whole hierarchy declares ``__slots__`` have no
    ``__dict__``, so only a ``_view`` slot would do.
    """
    return any(
        "__dict__" in vars(klass)
        or isinstance(vars(klass).get(VIEW_FIELD_NAME), MemberDescriptorType)
        for klass in cls.__mro__
    )


def require_view_holder(cls: type) -> None:
    if not can_hold_view(cls):
        raise EnhancementError(
            f"Class '{cls.__name__}' cannot be enhanced: its __slots__ leave no room for "
            f"the '{VIEW_FIELD_NAME}' field"
        )


def original_class(cls: type) -> type:
    """Return the class a generated subclass was derived from, or ``cls``."""
    return vars(cls).get(ORIGINAL_CLASS_ATTR, cls)


def is_intercepted(func: Callable) -> bool:
    return bool(getattr(func, INTERCEPTED_MARKER, False))


def interceptable_records(func: Callable) -> list[Any]:
    """Records on ``func`` (or the functions it wraps) requiring interception."""
    records: list[Any] = []
    while func is not None:
        store = getattr(func, "__dict__", {}).get(METADATA_ATTR) or {}
        records.extend(
            record
            for record in store.values()
            if isinstance(record, MethodInterceptable) and record not in records
        )
        func = getattr(func, "__wrapped__", None)
    return records


def interceptable_methods(cls: type) -> list[Callable]:
    """Public methods of ``cls`` carrying at least one interceptable record."""
    return [method for method in find_all_public_methods(cls) if interceptable_records(method)]
