"""Service registry with lazy, memoized factories.

Each slot holds either a ``Value`` (returned as-is) or a ``Factory`` (a
zero-argument callable invoked on first resolve, then memoized for the
lifetime of the registry).

Usage::

    container = Container()
    container.register("filters", Value(Filters()))
    container.register("cache", Factory(lambda: SQLiteCacheStore(path)))

    cache = container.resolve("cache")  # built once, shared afterwards
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class NotFoundError(LookupError):
    """Raised when resolving a name that was never registered."""


@dataclass(frozen=True)
class Value:
    """A registry slot holding a ready-made object."""

    value: Any


@dataclass(frozen=True)
class Factory:
    """A registry slot holding a zero-argument builder."""

    build: Callable[[], Any]


Entry = Value | Factory


class Container:
    def __init__(self) -> None:
        self._entries: dict[str, Entry] = {}
        self._resolved: dict[str, Any] = {}
        # Re-entrant so a factory may resolve other services while building.
        self._lock = threading.RLock()

    def register(self, name: str, entry: Entry) -> None:
        """Register (or replace) a slot. Replacing forgets any memoized instance."""
        if not isinstance(entry, (Value, Factory)):
            raise TypeError(f"Expected Value or Factory for {name!r}, got {type(entry).__name__}")
        with self._lock:
            self._entries[name] = entry
            self._resolved.pop(name, None)

    def has(self, name: str) -> bool:
        return name in self._entries

    def resolve(self, name: str) -> Any:
        """Return the service registered under ``name``.

        Raises:
            NotFoundError: If nothing was registered under ``name``.
        """
        entry = self._entries.get(name)
        if entry is None:
            raise NotFoundError(f"No service named {name} was registered.")

        match entry:
            case Value(value=value):
                return value
            case Factory():
                try:
                    return self._resolved[name]
                except KeyError:
                    pass
                with self._lock:
                    if name in self._resolved:
                        return self._resolved[name]
                    # The entry may have been replaced while waiting for the lock.
                    match self._entries.get(name):
                        case None:
                            raise NotFoundError(f"No service named {name} was registered.")
                        case Value(value=value):
                            return value
                        case Factory(build=build):
                            logger.debug("Building service %s", name)
                            self._resolved[name] = build()
                            return self._resolved[name]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __getitem__(self, name: str) -> Any:
        return self.resolve(name)

    def __setitem__(self, name: str, value: Any) -> None:
        if not isinstance(value, (Value, Factory)):
            value = Value(value)
        self.register(name, value)

    def __delitem__(self, name: str) -> None:
        with self._lock:
            self._entries.pop(name, None)
            self._resolved.pop(name, None)
