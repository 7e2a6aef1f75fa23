"""Named filter chains for overriding computed values.

A filter passes a value through every callback registered under its name,
in registration order. With no callbacks the value is returned unchanged.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

SUBSCRIBER_COUNT_FILTER = "subscriber_count"
LIST_COUNTS_CACHE_TTL_FILTER = "list_counts_cache_ttl"


class Filters:
    """Registry of filter callbacks keyed by filter name.

    Usage::

        filters = Filters()
        filters.add(SUBSCRIBER_COUNT_FILTER, lambda count: count + 100)
        total = filters.apply(SUBSCRIBER_COUNT_FILTER, 42)  # 142
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, list[Callable[[Any], Any]]] = defaultdict(list)

    def add(self, name: str, callback: Callable[[Any], Any]) -> None:
        self._callbacks[name].append(callback)

    def remove(self, name: str, callback: Callable[[Any], Any]) -> bool:
        """Unregister a callback. Returns True if it was registered."""
        callbacks = self._callbacks.get(name, [])
        if callback not in callbacks:
            return False
        callbacks.remove(callback)
        return True

    def apply(self, name: str, value: Any) -> Any:
        for callback in self._callbacks.get(name, ()):
            value = callback(value)
        logger.debug("Filter %s -> %r", name, value)
        return value
