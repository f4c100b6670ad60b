"""Helpers for isolating tests that touch process-wide state.

The application facade, the active navigator and the instrumentation agent
are global to the process. ``isolated_stagehand`` resets all of them before
and after the block it guards.

Example:
    >>> with isolated_stagehand():
    ...     app = Stagehand.builder().build()
    ...     app.scan_for_components()
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from stagehand.core.application import Stagehand
from stagehand.core.navigation import set_active_navigator
from stagehand.instrumentation.agent import uninstall_agent


def reset_global_state() -> None:
    """Reset the facade and remove the instrumentation agent."""
    Stagehand.reset()
    set_active_navigator(None)
    uninstall_agent()


@contextmanager
def isolated_stagehand() -> Iterator[None]:
    reset_global_state()
    try:
        yield
    finally:
        reset_global_state()
