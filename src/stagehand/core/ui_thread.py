"""The single designated thread for presentation object construction.

View objects must only be created and mutated on one thread. UIThread owns
a one-worker executor and exposes the blocking primitive used to marshal
work onto it:

    run_and_wait(fn)  - run on the UI thread, block until done, surface errors
    run_later(fn)     - schedule on the UI thread, return a Future

Calling run_and_wait from the UI thread itself runs the callable directly,
so nested construction never waits on its own queue.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, TypeVar

from loguru import logger

from .errors import ConstructionError, StagehandError

T = TypeVar("T")


class UIThread:
    """A dedicated single-thread execution context."""

    def __init__(self, name: str = "stagehand-ui"):
        self.name = name
        self._executor: ThreadPoolExecutor | None = None
        self._thread_id: int | None = None
        self._lock = threading.Lock()

    def _ensure_started(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=self.name)
                self._thread_id = self._executor.submit(threading.get_ident).result()
                logger.debug(f"Started UI thread {self.name} ({self._thread_id})")
            return self._executor

    def is_ui_thread(self) -> bool:
        """Whether the calling thread is this UI thread."""
        return self._thread_id is not None and threading.get_ident() == self._thread_id

    def run_later(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Future:
        return self._ensure_started().submit(fn, *args, **kwargs)

    def run_and_wait(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn`` on the UI thread and return its result.

        Framework errors raised by ``fn`` propagate unchanged. Any other
        failure is surfaced as a ConstructionError carrying the cause.
        """
        if self.is_ui_thread():
            return fn(*args, **kwargs)
        future = self.run_later(fn, *args, **kwargs)
        try:
            return future.result()
        except StagehandError:
            raise
        except Exception as e:
            raise ConstructionError(
                f"Execution on UI thread '{self.name}' failed: {e}", cause=e
            ) from e

    def shutdown(self) -> None:
        with self._lock:
            executor, thread_id = self._executor, self._thread_id
            self._executor, self._thread_id = None, None
        if executor is not None:
            # Waiting from the worker itself would never return
            executor.shutdown(wait=threading.get_ident() != thread_id)
            logger.debug(f"Stopped UI thread {self.name}")


_ui_thread = UIThread()
_ui_thread_lock = threading.Lock()


def get_ui_thread() -> UIThread:
    """Return the process-wide UI thread."""
    return _ui_thread


def set_ui_thread(ui_thread: UIThread) -> UIThread:
    """Replace the process-wide UI thread and return the previous one."""
    global _ui_thread
    with _ui_thread_lock:
        previous, _ui_thread = _ui_thread, ui_thread
    return previous


def run_in_ui_thread_and_wait(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    return get_ui_thread().run_and_wait(fn, *args, **kwargs)
