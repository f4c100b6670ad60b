"""Tests for the reflective helpers."""

from typing import Annotated, ClassVar, Optional

import pytest

from stagehand import inject, post_construct, show_view
from stagehand.core.annotations import Component, Inject, PostConstruct, ShowView, component
from stagehand.core.errors import InvocationError, MemberAccessError, MemberNotFoundError
from stagehand.core.introspection import (
    find_all_declared_fields,
    find_all_public_methods,
    find_annotated_fields,
    find_annotation,
    find_public_methods_by_predicate,
    find_public_methods_with_return_type,
    get_field_value,
    invoke_method,
    invoke_methods_with_annotation,
    set_field_value,
)


class Base:
    first: int = 1
    second: str
    dependency: "Base" = inject()
    counter: ClassVar[int] = 0

    def __init__(self):
        self.order = []

    @post_construct
    def base_init(self):
        self.order.append("base")

    @show_view(view_id="baseView")
    def navigate(self) -> str:
        return "base"

    def describe(self) -> str:
        return "base"

    def _hidden(self):
        return "hidden"


class Derived(Base):
    third: float = 0.5
    first: int = 2
    named: Annotated[Optional[Base], Inject(id="named")] = None

    @post_construct
    def derived_init(self):
        self.order.append("derived")

    def navigate(self) -> str:
        return "derived"

    def count(self) -> int:
        return 3


class ReadOnly:
    value: int

    @property
    def computed(self) -> int:
        return 42


class Failing:
    def explode(self):
        raise KeyError("nope")


@pytest.mark.unit
class TestFields:
    def test_declared_fields_most_derived_first(self):
        names = [field.name for field in find_all_declared_fields(Derived)]

        assert names == ["third", "first", "named", "second", "dependency"]

    def test_redeclared_field_reported_with_subclass(self):
        first = next(f for f in find_all_declared_fields(Derived) if f.name == "first")

        assert first.owner is Derived
        assert first.default == 2

    def test_class_vars_are_skipped(self):
        assert "counter" not in [field.name for field in find_all_declared_fields(Base)]

    def test_sort_key_reorders(self):
        fields = find_all_declared_fields(Derived, sort_key=lambda field: field.name)

        assert [field.name for field in fields] == sorted(field.name for field in fields)

    def test_annotated_fields(self):
        fields = find_annotated_fields(Derived, Inject)

        assert [field.name for field in fields] == ["named", "dependency"]
        assert fields[0].annotation(Inject) == Inject(id="named")
        assert fields[1].annotation(Inject) == Inject()

    def test_forward_reference_is_resolved(self):
        dependency = next(f for f in find_all_declared_fields(Base) if f.name == "dependency")

        assert dependency.type is Base

    def test_base_type_strips_annotated_and_optional(self):
        named = next(f for f in find_all_declared_fields(Derived) if f.name == "named")

        assert named.base_type is Base

    def test_get_field_value(self):
        assert get_field_value(Derived(), "third") == 0.5

    def test_get_missing_field(self):
        with pytest.raises(MemberNotFoundError) as exc_info:
            get_field_value(Derived(), "missing")

        assert exc_info.value.member == "missing"
        assert exc_info.value.owner is Derived

    def test_get_declared_but_unset_field(self):
        with pytest.raises(MemberAccessError):
            get_field_value(ReadOnly(), "value")

    def test_set_field_value(self):
        instance = ReadOnly()

        set_field_value(instance, "value", 7)

        assert instance.value == 7

    def test_set_undeclared_field_is_refused(self):
        with pytest.raises(MemberNotFoundError):
            set_field_value(ReadOnly(), "invented", 1)

    def test_set_read_only_property(self):
        with pytest.raises(MemberAccessError):
            set_field_value(ReadOnly(), "computed", 1)


@pytest.mark.unit
class TestMethods:
    def test_public_methods_most_derived_first(self):
        names = [method.__name__ for method in find_all_public_methods(Derived)]

        assert names == ["derived_init", "navigate", "count", "base_init", "describe"]
        assert find_all_public_methods(Derived)[1] is Derived.navigate

    def test_methods_by_predicate(self):
        methods = find_public_methods_by_predicate(Derived, lambda m: m.__name__.startswith("d"))

        assert [method.__name__ for method in methods] == ["derived_init", "describe"]

    def test_methods_with_return_type(self):
        methods = find_public_methods_with_return_type(Derived, str)

        assert [method.__name__ for method in methods] == ["navigate", "describe"]
        assert find_public_methods_with_return_type(Derived, float) == []

    def test_invoke_method(self):
        assert invoke_method(Derived(), "describe") == "base"

    def test_invoke_missing_method(self):
        with pytest.raises(MemberNotFoundError):
            invoke_method(Derived(), "missing")

    def test_invoke_non_callable(self):
        with pytest.raises(MemberAccessError):
            invoke_method(Derived(), "third")

    def test_invocation_failure_carries_cause(self):
        with pytest.raises(InvocationError) as exc_info:
            invoke_method(Failing(), "explode")

        assert isinstance(exc_info.value.cause, KeyError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    def test_invoke_annotated_methods_base_first(self):
        instance = Derived()

        invoke_methods_with_annotation(instance, PostConstruct)

        assert instance.order == ["base", "derived"]


@pytest.mark.unit
class TestFindAnnotation:
    def test_class_annotation(self):
        @component(id="thing")
        class Thing:
            pass

        assert find_annotation(Thing, Component) == Component(id="thing")

    def test_class_annotation_is_inherited(self):
        @component
        class Parent:
            pass

        class Child(Parent):
            pass

        assert find_annotation(Child, Component) == Component()

    def test_missing_class_annotation(self):
        assert find_annotation(Base, Component) is None

    def test_method_annotation(self):
        assert find_annotation(Base.navigate, ShowView) == ShowView(view_id="baseView")

    def test_overridden_method_inherits_annotation(self):
        assert find_annotation(Derived.navigate, ShowView, owner=Derived) == ShowView(
            view_id="baseView"
        )
        assert find_annotation(Derived().navigate, ShowView) == ShowView(view_id="baseView")

    def test_unrelated_method_has_no_annotation(self):
        assert find_annotation(Derived.count, ShowView, owner=Derived) is None
