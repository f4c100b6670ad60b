"""Tests for component discovery."""

import pytest

from stagehand.core.discovery import ComponentDiscoverer, is_managed_class
from stagehand.core.errors import ConfigurationError

from scanapp import controllers, services
from scanapp.nested.clock import Clock


@pytest.mark.unit
class TestComponentDiscoverer:
    def test_managed_class_predicate(self):
        assert is_managed_class(services.GreetingService)
        assert is_managed_class(controllers.MainController)
        assert not is_managed_class(services.NotManaged)

    def test_discover_module_in_definition_order(self):
        classes = ComponentDiscoverer().discover_module(services)

        assert classes == [services.GreetingService, services.AuditLog]

    def test_imported_classes_are_ignored(self):
        """controllers imports GreetingService and AuditLog but does not define them."""
        classes = ComponentDiscoverer().discover_module("scanapp.controllers")

        assert classes == [
            controllers.MainController,
            controllers.DetailController,
            controllers.SidebarController,
        ]

    def test_discover_package_recursively(self):
        classes = ComponentDiscoverer().discover_package("scanapp")

        assert set(classes) == {
            services.GreetingService,
            services.AuditLog,
            controllers.MainController,
            controllers.DetailController,
            controllers.SidebarController,
            Clock,
        }
        assert len(classes) == 6

    def test_non_recursive_discovery(self):
        assert ComponentDiscoverer().discover_package("scanapp", recursive=False) == []

    def test_custom_predicate(self):
        discoverer = ComponentDiscoverer(predicate=lambda cls: cls.__name__.endswith("Controller"))

        classes = discoverer.discover_package("scanapp")

        assert {cls.__name__ for cls in classes} == {
            "MainController",
            "DetailController",
            "SidebarController",
        }

    def test_missing_package(self):
        with pytest.raises(ConfigurationError, match="component scan"):
            ComponentDiscoverer().discover_package("scanapp.missing")
