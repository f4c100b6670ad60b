"""Exception hierarchy for the component container and enhancement engine.

Every failure raised by stagehand derives from StagehandError so callers can
catch framework errors in one place. Each subclass represents one failure
mode and carries the context needed to debug it.

Exception Hierarchy:
    StagehandError: Base exception for all stagehand errors
    ├── IntrospectionError: Reflective access failures
    │   ├── MemberNotFoundError: Field or method does not exist
    │   ├── MemberAccessError: Field or method may not be touched
    │   └── InvocationError: Reflective call raised
    ├── DefinitionError: Bean registration / lookup ambiguities
    │   ├── DuplicateBeanError: Bean id registered twice
    │   └── AmbiguousBeanError: Type lookup matched several beans
    ├── ResolutionError: Bean could not be resolved
    │   ├── NoSuchBeanError: No definition for the id or type
    │   └── CircularDependencyError: Bean depends on itself
    ├── ConstructionError: Supplier failed to produce an instance
    │   └── NoAccessibleConstructorError: No zero-argument constructor
    ├── DependencyError: Field injection failures
    │   └── UnresolvableDependencyError: No bean for an injection point
    ├── EnhancementError: Class enhancement failures
    ├── NavigationError: View navigation failures
    └── ConfigurationError: Facade configuration failures
        └── ApplicationStateError: Operation invalid in the current state

Example:
    >>> try:
    ...     container.get_bean("missing")
    ... except NoSuchBeanError as e:
    ...     print(f"Failed to resolve: {e.key}")

None of these errors are retried by the framework. They are raised once,
at the call that caused them, with the original cause chained.
"""

from __future__ import annotations

from typing import Any


class StagehandError(Exception):
    """Base exception for all stagehand errors."""

    pass


class IntrospectionError(StagehandError):
    """Raised when reflective access to a field or method fails."""

    def __init__(self, message: str, owner: Any = None, member: str | None = None):
        super().__init__(message)
        self.owner = owner
        self.member = member


class MemberNotFoundError(IntrospectionError):
    """Raised when a named field or method does not exist."""

    pass


class MemberAccessError(IntrospectionError):
    """Raised when a field or method exists but may not be read or written."""

    pass


class InvocationError(IntrospectionError):
    """Raised when a reflectively invoked method raised an exception.

    The original exception is available as ``cause`` and as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        owner: Any = None,
        member: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message, owner=owner, member=member)
        self.cause = cause


class DefinitionError(StagehandError):
    """Raised when a bean definition cannot be registered or selected."""

    pass


class DuplicateBeanError(DefinitionError):
    """Raised when a bean id is registered a second time."""

    def __init__(self, bean_id: str):
        super().__init__(f"A bean with id '{bean_id}' is already registered")
        self.bean_id = bean_id


class AmbiguousBeanError(DefinitionError):
    """Raised when a lookup by type matches more than one definition."""

    def __init__(self, bean_type: type, candidates: list[str]):
        self.bean_type = bean_type
        self.candidates = list(candidates)
        super().__init__(
            f"Type '{bean_type.__name__}' matches more than one bean: "
            f"{', '.join(self.candidates)}"
        )


class ResolutionError(StagehandError):
    """Raised when a bean cannot be resolved."""

    def __init__(self, message: str, key: Any = None):
        super().__init__(message)
        self.key = key


class NoSuchBeanError(ResolutionError):
    """Raised when no definition matches the requested id or type."""

    def __init__(self, key: str | type):
        name = key if isinstance(key, str) else getattr(key, "__name__", repr(key))
        super().__init__(f"No bean definition found for '{name}'", key=key)


class CircularDependencyError(ResolutionError):
    """Raised when a bean transitively requires itself during construction.

    ``cycle`` lists the bean ids in resolution order, ending with the id that
    was requested again.
    """

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        super().__init__(
            f"Circular dependency detected: {' -> '.join(self.cycle)}",
            key=self.cycle[0] if self.cycle else None,
        )


class ConstructionError(StagehandError):
    """Raised when a bean supplier fails to produce an instance.

    Covers constructor failures, post-construct failures and failures while
    marshalling construction onto the UI thread. The original exception is
    kept as ``cause``.
    """

    def __init__(self, message: str, bean_type: type | None = None, cause: BaseException | None = None):
        super().__init__(message)
        self.bean_type = bean_type
        self.cause = cause


class NoAccessibleConstructorError(ConstructionError):
    """Raised when a class cannot be constructed without arguments."""

    def __init__(self, bean_type: type):
        super().__init__(
            f"No accessible constructor for '{bean_type.__name__}'. "
            "Is there a no-arg constructor present?",
            bean_type=bean_type,
        )


class DependencyError(StagehandError):
    """Raised when field injection fails."""

    pass


class UnresolvableDependencyError(DependencyError):
    """Raised when no bean matches a field marked for injection."""

    def __init__(self, owner: type, field_name: str, field_type: Any, bean_id: str | None = None):
        self.owner = owner
        self.field_name = field_name
        self.field_type = field_type
        self.bean_id = bean_id
        target = f"id '{bean_id}'" if bean_id else f"type '{getattr(field_type, '__name__', field_type)}'"
        super().__init__(
            f"Unresolvable dependency for field '{field_name}' of "
            f"'{owner.__name__}': no bean with {target}"
        )


class EnhancementError(StagehandError):
    """Raised when a class cannot be enhanced or was not enhanced.

    This is fatal at configuration time when the runtime instrumentation
    agent is selected but not active.
    """

    pass


class NavigationError(StagehandError):
    """Raised when an intercepted method's navigation cannot be performed."""

    pass


class ConfigurationError(StagehandError):
    """Raised for invalid facade configuration."""

    pass


class ApplicationStateError(ConfigurationError):
    """Raised when a facade operation is invoked in the wrong state."""

    def __init__(self, message: str, current: Any = None, expected: Any = None):
        super().__init__(message)
        self.current = current
        self.expected = expected
