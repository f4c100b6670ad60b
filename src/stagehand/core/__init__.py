"""Core of the stagehand component container.

Key Components:
    BeanContainer: Registry realizing, injecting and caching beans
    Stagehand: Process-wide application facade with a three-state lifecycle
    Decorators: @component, @controller, @show_view, @post_construct
    Enhancer: Makes navigation-annotated methods interceptable
    UIThread: Single thread for view construction

Usage Example:
    >>> from stagehand.core import BeanContainer, component, inject
    >>>
    >>> @component
    ... class Repository:
    ...     pass
    >>>
    >>> @component
    ... class Service:
    ...     repository: Repository = inject()
    >>>
    >>> container = BeanContainer()
    >>> container.add_component_bean_definition(Repository)
    >>> container.add_component_bean_definition(Service)
    >>> container.get_bean(Service).repository is container.get_bean("repository")
    True
"""

from stagehand.core.annotations import (
    Application,
    Component,
    Controller,
    Inject,
    NestedView,
    PostConstruct,
    ShowView,
    application,
    component,
    controller,
    inject,
    post_construct,
    show_view,
)
from stagehand.core.container import BeanContainer, BeanDefinition, derive_bean_id
from stagehand.core.enhancement import VIEW_FIELD_NAME, EnhancementStrategy, Enhancer
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
from stagehand.core.instantiation import (
    ConstructorBasedInstantiationSupplier,
    ControllerInstantiationSupplier,
    InstantiationSupplier,
)
from stagehand.core.navigation import ViewNavigator
from stagehand.core.ui_thread import UIThread, get_ui_thread, run_in_ui_thread_and_wait
from stagehand.core.views import (
    BasicMarkupLoader,
    HeadlessViewGraph,
    MarkupLoader,
    ShowOptions,
    View,
    ViewGraph,
    Window,
)
from stagehand.core.wrapper import ControllerWrapper
from stagehand.core.application import (
    ApplicationState,
    Stagehand,
    StagehandBuilder,
    StagehandConfig,
)

__all__ = [
    # Container
    "BeanContainer",
    "BeanDefinition",
    "derive_bean_id",
    # Facade
    "Stagehand",
    "StagehandBuilder",
    "StagehandConfig",
    "ApplicationState",
    # Metadata
    "Application",
    "Component",
    "Controller",
    "Inject",
    "NestedView",
    "PostConstruct",
    "ShowView",
    "application",
    "component",
    "controller",
    "inject",
    "post_construct",
    "show_view",
    # Enhancement
    "Enhancer",
    "EnhancementStrategy",
    "VIEW_FIELD_NAME",
    "ControllerWrapper",
    # Instantiation
    "InstantiationSupplier",
    "ConstructorBasedInstantiationSupplier",
    "ControllerInstantiationSupplier",
    # Views
    "BasicMarkupLoader",
    "HeadlessViewGraph",
    "MarkupLoader",
    "ShowOptions",
    "View",
    "ViewGraph",
    "ViewNavigator",
    "Window",
    # Threading
    "UIThread",
    "get_ui_thread",
    "run_in_ui_thread_and_wait",
    # Errors
    "StagehandError",
    "IntrospectionError",
    "MemberNotFoundError",
    "MemberAccessError",
    "InvocationError",
    "DefinitionError",
    "DuplicateBeanError",
    "AmbiguousBeanError",
    "ResolutionError",
    "NoSuchBeanError",
    "CircularDependencyError",
    "ConstructionError",
    "NoAccessibleConstructorError",
    "DependencyError",
    "UnresolvableDependencyError",
    "EnhancementError",
    "NavigationError",
    "ConfigurationError",
    "ApplicationStateError",
]
