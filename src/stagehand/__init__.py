"""Stagehand - annotation-driven components and view navigation.

Stagehand wires controllers, views and services together from declarative
metadata. Classes are registered in a bean container, fields are injected
by id or type, and controller methods decorated with @show_view navigate
to another view once their body has returned.

Quick Start:
    >>> from stagehand import Stagehand, controller, inject, show_view
    >>>
    >>> @controller(view_id="mainView", markup="/views/main.view")
    ... class MainController:
    ...     greeter: Greeter = inject()
    ...
    ...     @show_view(view_id="detailView")
    ...     def open_details(self):
    ...         return self.greeter.greet()
    >>>
    >>> app = Stagehand.builder().scan_package("myapp").main_view_id("mainView").build()
    >>> app.scan_for_components()
    >>> app.display_main_view()
"""

__version__ = "0.1.0"

from stagehand.core.annotations import (
    NestedView,
    application,
    component,
    controller,
    inject,
    post_construct,
    show_view,
)
from stagehand.core.application import ApplicationState, Stagehand, StagehandBuilder, StagehandConfig
from stagehand.core.container import BeanContainer, BeanDefinition
from stagehand.core.enhancement import EnhancementStrategy, Enhancer
from stagehand.core.errors import (
    AmbiguousBeanError,
    ApplicationStateError,
    CircularDependencyError,
    ConfigurationError,
    ConstructionError,
    DuplicateBeanError,
    EnhancementError,
    NavigationError,
    NoSuchBeanError,
    StagehandError,
    UnresolvableDependencyError,
)
from stagehand.core.ui_thread import UIThread
from stagehand.core.views import HeadlessViewGraph, View, Window
from stagehand.core.wrapper import ControllerWrapper
from stagehand.instrumentation import (
    RuntimeAgentEnhancer,
    SubclassingEnhancer,
    agent_installed,
    enhancer_for,
    install_agent,
    uninstall_agent,
)

__all__ = [
    # Facade
    "Stagehand",
    "StagehandBuilder",
    "StagehandConfig",
    "ApplicationState",
    # Container
    "BeanContainer",
    "BeanDefinition",
    # Decorators
    "application",
    "component",
    "controller",
    "inject",
    "post_construct",
    "show_view",
    "NestedView",
    # Enhancement
    "Enhancer",
    "EnhancementStrategy",
    "ControllerWrapper",
    "RuntimeAgentEnhancer",
    "SubclassingEnhancer",
    "agent_installed",
    "enhancer_for",
    "install_agent",
    "uninstall_agent",
    # Views
    "HeadlessViewGraph",
    "UIThread",
    "View",
    "Window",
    # Errors
    "StagehandError",
    "AmbiguousBeanError",
    "ApplicationStateError",
    "CircularDependencyError",
    "ConfigurationError",
    "ConstructionError",
    "DuplicateBeanError",
    "EnhancementError",
    "NavigationError",
    "NoSuchBeanError",
    "UnresolvableDependencyError",
]
