"""Maps of named callbacks that produce values on demand."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, Optional, TypeVar

from .regex_util import KeyedStore

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CallbackEntry(Generic[T]):
    """A single registered callback that can be cleared concurrently."""

    def __init__(self, callback: Callable[[], T]) -> None:
        self._lock = threading.RLock()
        self._callback: Optional[Callable[[], T]] = callback

    def clear(self) -> None:
        """Drop the callback; later reads report no value."""
        with self._lock:
            self._callback = None

    def _call(self) -> tuple[bool, Optional[T]]:
        with self._lock:
            if self._callback is None:
                return False, None
            return True, self._callback()

    def get_value(self) -> Optional[T]:
        """Invoke the callback, or return None if it has been cleared."""
        return self._call()[1]


class CallbackValuesMap(Generic[T]):
    """Thread-safe map from names to value-producing callbacks."""

    def __init__(self) -> None:
        self._store = KeyedStore()

    def _snapshot(self) -> list[tuple[str, CallbackEntry[T]]]:
        with self._store.lock:
            return sorted(self._store.entries.items())

    def get_values(self) -> dict[str, T]:
        """Invoke every callback and return the results by name, sorted."""
        # Callbacks run outside the map lock so they cannot deadlock with it.
        values: dict[str, T] = {}
        for name, entry in self._snapshot():
            ok, value = entry._call()
            if ok:
                values[name] = value  # type: ignore[assignment]
        return values

    def get_value(self, name: str) -> Optional[T]:
        """Invoke the named callback; None if it is not registered."""
        with self._store.lock:
            entry = self._store.entries.get(name)
        if entry is None:
            return None
        return entry._call()[1]

    def contains(self, name: str) -> bool:
        with self._store.lock:
            return name in self._store.entries

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.contains(name)

    def __len__(self) -> int:
        return self.get_num_keys()

    def get_keys(self) -> list[str]:
        """Return all registered names, sorted."""
        with self._store.lock:
            return sorted(self._store.entries)

    def get_regex_keys(self, regex: str) -> list[str]:
        """Return registered names fully matching ``regex``, sorted."""
        return self._store.regex_keys(regex)

    def get_num_keys(self) -> int:
        with self._store.lock:
            return len(self._store.entries)

    def register_callback(self, name: str, callback: Callable[[], T]) -> None:
        """Register ``callback`` under ``name``, replacing any previous one."""
        with self._store.lock:
            self._store.entries[name] = CallbackEntry(callback)
            self._store.bump_epoch()

    def unregister_callback(self, name: str) -> bool:
        """Remove the named callback; False if it was not registered."""
        with self._store.lock:
            entry = self._store.entries.get(name)
            if entry is None:
                return False
            entry.clear()
            self._store.bump_epoch()
            del self._store.entries[name]
        logger.debug("Unregistered callback: %s", name)
        return True

    def clear(self) -> None:
        """Unregister every callback."""
        with self._store.lock:
            for entry in self._store.entries.values():
                entry.clear()
            self._store.bump_epoch()
            self._store.entries.clear()

    def get_callback(self, name: str) -> Optional[CallbackEntry[T]]:
        """Return the entry registered under ``name``, or None."""
        with self._store.lock:
            return self._store.entries.get(name)


class DynamicCounters(CallbackValuesMap[int]):
    """Integer-valued callbacks, with counter-named accessors."""

    def get_counters(self) -> dict[str, int]:
        return self.get_values()

    def get_counter(self, name: str) -> Optional[int]:
        return self.get_value(name)


class DynamicStrings(CallbackValuesMap[str]):
    """String-valued callbacks."""