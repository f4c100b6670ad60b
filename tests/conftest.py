"""Shared test fixtures."""

from dataclasses import dataclass

import pytest

from stagehand import (
    BeanContainer,
    EnhancementStrategy,
    HeadlessViewGraph,
    UIThread,
    enhancer_for,
)
from stagehand.core.navigation import ViewNavigator, set_active_navigator
from stagehand.core.views import ShowOptions
from stagehand.testing import isolated_stagehand

from scanapp.controllers import DetailController, MainController, SidebarController
from scanapp.services import AuditLog, GreetingService


@pytest.fixture(autouse=True)
def isolated():
    """Reset the facade, navigator and agent around every test."""
    with isolated_stagehand():
        yield


@pytest.fixture
def ui_thread():
    thread = UIThread("test-ui")
    yield thread
    thread.shutdown()


@pytest.fixture
def container():
    return BeanContainer()


@pytest.fixture(params=list(EnhancementStrategy), ids=lambda strategy: strategy.name.lower())
def strategy(request):
    return request.param


@pytest.fixture
def enhancer(strategy):
    enhancer = enhancer_for(strategy)
    if strategy is EnhancementStrategy.RUNTIME_INSTRUMENTATION_AGENT:
        enhancer.install_agent()
    return enhancer


@dataclass
class Stage:
    """A container with the sample controllers and an active navigator."""

    container: BeanContainer
    view_graph: HeadlessViewGraph
    navigator: ViewNavigator

    def show_main_view(self):
        view = self.view_graph.show_view("mainView", ShowOptions(new_window=True))
        self.view_graph.clear_history()
        return view


@pytest.fixture
def stage(enhancer, ui_thread):
    container = BeanContainer(enhancer, ui_thread=ui_thread)
    container.add_component_bean_definition(GreetingService)
    container.add_component_bean_definition(AuditLog)
    for controller_class in (MainController, DetailController, SidebarController):
        container.add_controller_bean_definition(controller_class)
    view_graph = HeadlessViewGraph(container.get_bean)
    navigator = ViewNavigator(view_graph, ui_thread)
    set_active_navigator(navigator)
    yield Stage(container, view_graph, navigator)
    set_active_navigator(None)
