"""Reflective helpers for locating and touching annotated members.

Everything here is a pure function over classes and instances. Lookups
follow Python's attribute model: fields are annotated class attributes,
methods are plain functions defined in a class body, and annotation lookup
walks the method resolution order until a record is found.

Failures never escape as raw ``AttributeError`` or arbitrary exceptions.
They are converted into the IntrospectionError family:

    MemberNotFoundError  - the named field or method does not exist
    MemberAccessError    - it exists but cannot be read, written or called
    InvocationError      - the invoked method raised (cause is chained)
"""

from __future__ import annotations

import inspect
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, get_type_hints

from .annotations import own_metadata
from .errors import InvocationError, MemberAccessError, MemberNotFoundError

_MISSING = object()


@dataclass(frozen=True)
class FieldInfo:
    """A declared field: an annotated class attribute."""

    name: str
    type: Any
    owner: type
    default: Any = _MISSING

    @property
    def base_type(self) -> Any:
        """The field type with ``Annotated`` metadata and ``Optional`` stripped."""
        hint = self.type
        if typing.get_origin(hint) is typing.Annotated:
            hint = typing.get_args(hint)[0]
        if typing.get_origin(hint) in (typing.Union, types.UnionType):
            args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
            if len(args) == 1:
                hint = args[0]
        return hint

    def annotation(self, record_type: type) -> Any:
        """Return the ``record_type`` record carried by this field, if any."""
        if typing.get_origin(self.type) is typing.Annotated:
            for meta in self.type.__metadata__:
                if isinstance(meta, record_type):
                    return meta
        if isinstance(self.default, record_type):
            return self.default
        return None


def _own_annotations(cls: type) -> dict[str, Any]:
    try:
        raw = inspect.get_annotations(cls)
    except (NameError, TypeError):
        raw = dict(vars(cls).get("__annotations__", {}))
    if not raw:
        return {}
    try:
        resolved = get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        resolved = {}
    return {name: resolved.get(name, hint) for name, hint in raw.items()}


def _is_class_var(hint: Any) -> bool:
    if hint is typing.ClassVar or typing.get_origin(hint) is typing.ClassVar:
        return True
    return isinstance(hint, str) and hint.startswith(("ClassVar", "typing.ClassVar"))


def find_all_declared_fields(
    cls: type, sort_key: Callable[[FieldInfo], Any] | None = None
) -> list[FieldInfo]:
    """Return all fields declared on ``cls`` and its bases.

    Fields come in declaration order, the most-derived class first. A field
    redeclared in a subclass is reported once, with the subclass declaration.
    ``sort_key`` optionally reorders the result (the sort is stable).
    """
    seen: set[str] = set()
    fields: list[FieldInfo] = []
    for klass in cls.__mro__:
        if klass is object:
            continue
        for name, hint in _own_annotations(klass).items():
            if name in seen or _is_class_var(hint):
                continue
            seen.add(name)
            fields.append(FieldInfo(name, hint, klass, vars(klass).get(name, _MISSING)))
    if sort_key is not None:
        fields.sort(key=sort_key)
    return fields


def find_annotated_fields(
    cls: type, record_type: type, sort_key: Callable[[FieldInfo], Any] | None = None
) -> list[FieldInfo]:
    """Return the declared fields carrying a ``record_type`` record."""
    return [
        info
        for info in find_all_declared_fields(cls, sort_key)
        if info.annotation(record_type) is not None
    ]


def find_all_public_methods(cls: type) -> list[Callable]:
    """Return public functions reachable on ``cls``, most-derived definition first."""
    seen: set[str] = set()
    methods: list[Callable] = []
    for klass in cls.__mro__:
        if klass is object:
            continue
        for name, value in vars(klass).items():
            if name.startswith("_") or name in seen:
                continue
            seen.add(name)
            if inspect.isfunction(value):
                methods.append(value)
    return methods


def find_public_methods_by_predicate(
    cls: type, predicate: Callable[[Callable], bool]
) -> list[Callable]:
    return [method for method in find_all_public_methods(cls) if predicate(method)]


def find_public_methods_with_return_type(cls: type, return_type: type) -> list[Callable]:
    """Return public methods whose declared return type is ``return_type`` or a subclass."""

    def returns(method: Callable) -> bool:
        try:
            hint = get_type_hints(method).get("return", _MISSING)
        except (NameError, TypeError):
            hint = getattr(method, "__annotations__", {}).get("return", _MISSING)
        if hint is _MISSING:
            return False
        if hint is None:
            hint = type(None)
        return inspect.isclass(hint) and issubclass(hint, return_type)

    return find_public_methods_by_predicate(cls, returns)


def find_annotation(target: Any, record_type: type, owner: type | None = None) -> Any:
    """Return the nearest ``record_type`` record on a class or method.

    For a class the MRO is walked. For a method, the record on the function
    itself wins, otherwise the same-named attribute is looked up along the
    owner's MRO. The owner is taken from a bound method or passed explicitly.
    Returns None when no record is found.
    """
    if inspect.isclass(target):
        for klass in target.__mro__:
            record = own_metadata(klass, record_type)
            if record is not None:
                return record
        return None

    if inspect.ismethod(target):
        owner = owner or type(target.__self__)
        target = target.__func__

    func = target
    while func is not None:
        record = own_metadata(func, record_type)
        if record is not None:
            return record
        func = getattr(func, "__wrapped__", None)

    name = getattr(target, "__name__", None)
    if owner is None or name is None:
        return None
    for klass in owner.__mro__:
        candidate = vars(klass).get(name)
        if candidate is None or candidate is target:
            continue
        while candidate is not None:
            record = own_metadata(candidate, record_type)
            if record is not None:
                return record
            candidate = getattr(candidate, "__wrapped__", None)
    return None


def _declares(instance: Any, name: str) -> bool:
    if name in getattr(instance, "__dict__", {}):
        return True
    return any(
        name in vars(klass) or name in _own_annotations(klass)
        for klass in type(instance).__mro__
        if klass is not object
    )


def get_field_value(instance: Any, name: str) -> Any:
    try:
        return getattr(instance, name)
    except AttributeError as e:
        if _declares(instance, name):
            raise MemberAccessError(
                f"Field '{name}' of '{type(instance).__name__}' cannot be read",
                owner=type(instance),
                member=name,
            ) from e
        raise MemberNotFoundError(
            f"Field '{name}' not found on '{type(instance).__name__}'",
            owner=type(instance),
            member=name,
        ) from e


def set_field_value(instance: Any, name: str, value: Any) -> None:
    """Assign a declared field, refusing to invent new attributes."""
    cls = type(instance)
    if not _declares(instance, name):
        raise MemberNotFoundError(
            f"Field '{name}' not found on '{cls.__name__}'", owner=cls, member=name
        )
    try:
        setattr(instance, name, value)
    except (AttributeError, TypeError) as e:
        raise MemberAccessError(
            f"Field '{name}' of '{cls.__name__}' cannot be written", owner=cls, member=name
        ) from e


def invoke_method(instance: Any, name: str, *args: Any, **kwargs: Any) -> Any:
    """Call ``instance.name(*args, **kwargs)``, wrapping failures."""
    cls = type(instance)
    try:
        method = getattr(instance, name)
    except AttributeError as e:
        raise MemberNotFoundError(
            f"Method '{name}' not found on '{cls.__name__}'", owner=cls, member=name
        ) from e
    if not callable(method):
        raise MemberAccessError(
            f"Attribute '{name}' of '{cls.__name__}' is not callable", owner=cls, member=name
        )
    try:
        return method(*args, **kwargs)
    except Exception as e:
        raise InvocationError(
            f"Invocation of '{cls.__name__}.{name}' failed: {e}",
            owner=cls,
            member=name,
            cause=e,
        ) from e


def invoke_methods_with_annotation(instance: Any, record_type: type) -> list[Any]:
    """Invoke every no-argument method of ``instance`` carrying ``record_type``.

    Base class methods run before subclass methods, each class in declaration
    order.
    """
    cls = type(instance)
    rank = {klass: index for index, klass in enumerate(reversed(cls.__mro__))}

    def defining_class(method: Callable) -> type:
        return next(klass for klass in cls.__mro__ if vars(klass).get(method.__name__) is method)

    methods = [
        method
        for method in find_all_public_methods(cls)
        if find_annotation(method, record_type, owner=cls) is not None
    ]
    methods.sort(key=lambda method: rank[defining_class(method)])
    return [invoke_method(instance, method.__name__) for method in methods]
