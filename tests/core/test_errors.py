"""Tests for the exception hierarchy."""

import pytest

from stagehand.core.errors import (
    AmbiguousBeanError,
    ApplicationStateError,
    CircularDependencyError,
    ConfigurationError,
    ConstructionError,
    DefinitionError,
    DependencyError,
    DuplicateBeanError,
    EnhancementError,
    IntrospectionError,
    InvocationError,
    MemberAccessError,
    MemberNotFoundError,
    NavigationError,
    NoAccessibleConstructorError,
    NoSuchBeanError,
    ResolutionError,
    StagehandError,
    UnresolvableDependencyError,
)


class Repository:
    pass


@pytest.mark.unit
class TestHierarchy:
    @pytest.mark.parametrize(
        "error_type, parent",
        [
            (MemberNotFoundError, IntrospectionError),
            (MemberAccessError, IntrospectionError),
            (InvocationError, IntrospectionError),
            (DuplicateBeanError, DefinitionError),
            (AmbiguousBeanError, DefinitionError),
            (NoSuchBeanError, ResolutionError),
            (CircularDependencyError, ResolutionError),
            (NoAccessibleConstructorError, ConstructionError),
            (UnresolvableDependencyError, DependencyError),
            (ApplicationStateError, ConfigurationError),
            (EnhancementError, StagehandError),
            (NavigationError, StagehandError),
        ],
    )
    def test_parent(self, error_type, parent):
        assert issubclass(error_type, parent)
        assert issubclass(error_type, StagehandError)


@pytest.mark.unit
class TestContext:
    def test_duplicate_bean(self):
        error = DuplicateBeanError("repo")

        assert error.bean_id == "repo"
        assert "'repo'" in str(error)

    def test_ambiguous_bean(self):
        error = AmbiguousBeanError(Repository, ["sql", "memory"])

        assert error.candidates == ["sql", "memory"]
        assert str(error) == "Type 'Repository' matches more than one bean: sql, memory"

    def test_no_such_bean_by_type(self):
        error = NoSuchBeanError(Repository)

        assert error.key is Repository
        assert "'Repository'" in str(error)

    def test_circular_dependency(self):
        error = CircularDependencyError(["a", "b", "a"])

        assert error.cycle == ["a", "b", "a"]
        assert error.key == "a"
        assert str(error) == "Circular dependency detected: a -> b -> a"

    def test_no_accessible_constructor(self):
        error = NoAccessibleConstructorError(Repository)

        assert error.bean_type is Repository
        assert error.cause is None
        assert "Is there a no-arg constructor present?" in str(error)

    def test_unresolvable_dependency_by_type(self):
        error = UnresolvableDependencyError(Repository, "clock", int)

        assert error.bean_id is None
        assert str(error) == (
            "Unresolvable dependency for field 'clock' of 'Repository': no bean with type 'int'"
        )

    def test_unresolvable_dependency_by_id(self):
        error = UnresolvableDependencyError(Repository, "clock", int, bean_id="systemClock")

        assert "no bean with id 'systemClock'" in str(error)

    def test_invocation_error_keeps_cause(self):
        cause = ValueError("bad")

        error = InvocationError("failed", owner=Repository, member="run", cause=cause)

        assert (error.owner, error.member, error.cause) == (Repository, "run", cause)

    def test_application_state(self):
        error = ApplicationStateError("wrong state", current="a", expected="b")

        assert (error.current, error.expected) == ("a", "b")
