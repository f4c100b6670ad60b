"""The interception protocol shared by every enhancement strategy.

Both the generated subclasses and the instrumented classes replace an
annotated method with the wrapper produced by ``intercepted``. The wrapper
hands the call to ``intercept``, which runs the original body first and
only then performs the side effect belonging to each interceptable record
on the method. If the body raises, the exception propagates untouched and
no side effect happens.
"""

from __future__ import annotations

import functools
import threading
from typing import Any, Callable
from weakref import WeakKeyDictionary

from loguru import logger

from ..core.annotations import ShowView
from ..core.enhancement import INTERCEPTED_MARKER, interceptable_records
from ..core.navigation import get_active_navigator

Handler = Callable[[Any, Any, Callable], None]

_handlers: dict[type, Handler] = {}
_record_cache: WeakKeyDictionary = WeakKeyDictionary()
_cache_lock = threading.Lock()


def register_interceptor(record_type: type, handler: Handler) -> None:
    """Register the side effect performed for methods carrying ``record_type``.

    The handler receives the record, the instance and the original method.
    """
    _handlers[record_type] = handler


def _records_for(method: Callable) -> list[Any]:
    with _cache_lock:
        records = _record_cache.get(method)
        if records is None:
            records = interceptable_records(method)
            _record_cache[method] = records
    return records


def intercept(
    method: Callable,
    instance: Any,
    args: tuple,
    kwargs: dict,
    call: Callable[[], Any],
) -> Any:
    """Run ``call`` and then the side effects declared on ``method``.

    Args:
        method: The original, unwrapped function
        instance: The instance the method was invoked on
        args: Positional arguments of the call
        kwargs: Keyword arguments of the call
        call: Zero-argument callable executing the original body

    Returns:
        Whatever the original body returned
    """
    result = call()
    for record in _records_for(method):
        handler = _handlers.get(type(record))
        if handler is None:
            logger.warning(f"No interceptor registered for {type(record).__name__} on {method.__qualname__}")
            continue
        handler(record, instance, method)
    return result


def intercepted(method: Callable) -> Callable:
    """Wrap ``method`` so that every call goes through ``intercept``."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        return intercept(method, self, args, kwargs, lambda: method(self, *args, **kwargs))

    setattr(wrapper, INTERCEPTED_MARKER, True)
    return wrapper


def _show_view(action: ShowView, instance: Any, method: Callable) -> None:
    get_active_navigator().navigate(instance, action)


register_interceptor(ShowView, _show_view)
