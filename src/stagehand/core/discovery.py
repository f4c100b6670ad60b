"""Discovery of decorated classes under a root package.

The discoverer imports the root package and, recursively, every submodule
below it, and collects the classes defined in those modules that carry a
Component or Controller record of their own. Imported classes are ignored,
so a class is reported once, by the module that defines it.

Example:
    >>> discoverer = ComponentDiscoverer()
    >>> classes = discoverer.discover_package("myapp")
    >>> print(f"Found {len(classes)} managed classes")
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
from types import ModuleType
from typing import Callable

from loguru import logger

from .annotations import Component, Controller, own_metadata
from .errors import ConfigurationError


def is_managed_class(cls: type) -> bool:
    return own_metadata(cls, Component) is not None or own_metadata(cls, Controller) is not None


class ComponentDiscoverer:
    """Finds managed classes in modules and packages.

    Args:
        predicate: Filter deciding which classes are collected,
            ``is_managed_class`` by default
    """

    def __init__(self, predicate: Callable[[type], bool] = is_managed_class):
        self.predicate = predicate

    def _import(self, module_name: str) -> ModuleType:
        try:
            return importlib.import_module(module_name)
        except ImportError as e:
            raise ConfigurationError(f"Cannot import '{module_name}' for component scan: {e}") from e

    def discover_module(self, module: str | ModuleType) -> list[type]:
        """Return the matching classes defined in ``module``, in definition order."""
        if isinstance(module, str):
            module = self._import(module)
        discovered = []
        for obj in vars(module).values():
            if not inspect.isclass(obj):
                continue
            # Only classes defined in this module
            if obj.__module__ != module.__name__:
                continue
            if self.predicate(obj):
                discovered.append(obj)
        return discovered

    def discover_package(self, package: str | ModuleType, recursive: bool = True) -> list[type]:
        """Return the matching classes of ``package`` and its submodules."""
        if isinstance(package, str):
            package = self._import(package)

        discovered = self.discover_module(package)
        if recursive and hasattr(package, "__path__"):
            for _, module_name, _ in pkgutil.walk_packages(
                package.__path__, prefix=package.__name__ + "."
            ):
                discovered.extend(self.discover_module(module_name))

        logger.debug(f"Discovered {len(discovered)} managed classes in {package.__name__}")
        return discovered
