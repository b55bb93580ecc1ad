"""A bounded map that evicts the least recently used entry."""

from __future__ import annotations

import enum
from collections import OrderedDict
from typing import Any, Callable, Generic, Hashable, Iterator, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

EvictCallback = Callable[[tuple[Any, Any]], None]


class CapacityError(ValueError):
    """Raised when an entry cannot be added because the capacity is zero."""


class SetResult(enum.IntEnum):
    """Outcome of :meth:`SimpleLRUMap.try_set`."""

    NO_CAPACITY = 0
    CREATED = 1
    UPDATED = -1


class SimpleLRUMap(Generic[K, V]):
    """Map with a fixed capacity; the entry at the back is evicted first.

    Iteration runs from the most recently used entry to the least.
    Lookups through ``find``, ``peek``, ``touch`` and indexing count hits
    and misses.
    """

    def __init__(self, capacity: int = 0) -> None:
        self._capacity = capacity
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._hits = 0
        self._misses = 0

    # -- internals -------------------------------------------------------

    def _evict(self, evict_callback: Optional[EvictCallback]) -> None:
        entry = self._entries.popitem(last=True)
        if evict_callback is not None:
            evict_callback(entry)

    def _ensure_room(self, evict_callback: Optional[EvictCallback]) -> bool:
        if self._capacity < 1:
            return False
        while len(self._entries) >= self._capacity:
            self._evict(evict_callback)
        return True

    def _try_add(
        self, key: K, value: V, evict_callback: Optional[EvictCallback]
    ) -> bool:
        if not self._ensure_room(evict_callback):
            return False
        self._entries[key] = value
        self._entries.move_to_end(key, last=False)
        return True

    # -- lookups ---------------------------------------------------------

    def find(self, key: K, move_to_front: bool = False) -> Optional[tuple[K, V]]:
        """Return the ``(key, value)`` pair, or None when absent."""
        if key not in self._entries:
            self._misses += 1
            return None
        if move_to_front:
            self._entries.move_to_end(key, last=False)
        self._hits += 1
        return key, self._entries[key]

    def peek(self, key: K) -> V:
        """Return the value without moving it; KeyError when absent."""
        found = self.find(key)
        if found is None:
            raise KeyError(key)
        return found[1]

    def touch(self, key: K) -> V:
        """Return the value and move it to the front; KeyError when absent."""
        found = self.find(key, True)
        if found is None:
            raise KeyError(key)
        return found[1]

    def __getitem__(self, key: K) -> V:
        found = self.find(key, False)
        if found is None:
            raise KeyError(key)
        return found[1]

    # -- creation and update ---------------------------------------------

    def try_get_or_create(
        self,
        key: K,
        factory: Optional[Callable[[K], V]] = None,
        move_to_front: bool = True,
        evict_callback: Optional[EvictCallback] = None,
    ) -> Optional[V]:
        """Return the value for ``key``, creating it with ``factory(key)``.

        Without a factory a new entry holds None. Returns None when there
        is no capacity for a new entry.
        """
        found = self.find(key, move_to_front)
        if found is not None:
            return found[1]
        value = factory(key) if factory is not None else None
        if not self._try_add(key, value, evict_callback):  # type: ignore[arg-type]
            return None
        return value  # type: ignore[return-value]

    def get_or_create(
        self,
        key: K,
        factory: Optional[Callable[[K], V]] = None,
        move_to_front: bool = True,
        evict_callback: Optional[EvictCallback] = None,
    ) -> Optional[V]:
        """Like ``try_get_or_create`` but raises CapacityError when full."""
        found = self.find(key, move_to_front)
        if found is not None:
            return found[1]
        value = factory(key) if factory is not None else None
        if not self._try_add(key, value, evict_callback):  # type: ignore[arg-type]
            raise CapacityError("no capacity")
        return value

    def try_set(
        self,
        key: K,
        value: V,
        move_to_front: bool = True,
        evict_callback: Optional[EvictCallback] = None,
    ) -> SetResult:
        """Store ``value``; ``move_to_front`` applies to existing keys only."""
        if key not in self._entries:
            if not self._try_add(key, value, evict_callback):
                return SetResult.NO_CAPACITY
            return SetResult.CREATED
        if move_to_front:
            self._entries.move_to_end(key, last=False)
        self._entries[key] = value
        return SetResult.UPDATED

    def set(
        self,
        key: K,
        value: V,
        move_to_front: bool = True,
        evict_callback: Optional[EvictCallback] = None,
    ) -> bool:
        """Store ``value``; True if a new entry was created.

        Raises CapacityError when there is no capacity.
        """
        result = self.try_set(key, value, move_to_front, evict_callback)
        if result is SetResult.NO_CAPACITY:
            raise CapacityError("no capacity")
        return result is SetResult.CREATED

    def erase(self, key: K) -> bool:
        """Remove ``key``; False if it was absent."""
        if key not in self._entries:
            return False
        del self._entries[key]
        return True

    # -- container protocol ----------------------------------------------

    def __iter__(self) -> Iterator[K]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def items(self) -> list[tuple[K, V]]:
        """Return the entries, most recently used first."""
        return list(self._entries.items())

    def clear(self, clear_stats: bool = True) -> None:
        self._entries.clear()
        if clear_stats:
            self.clear_stats()

    def empty(self) -> bool:
        return not self._entries

    def size(self) -> int:
        return len(self._entries)

    def capacity(self) -> int:
        return self._capacity

    def set_capacity(
        self, new_capacity: int, evict_callback: Optional[EvictCallback] = None
    ) -> int:
        """Change the capacity, evicting as needed; returns the old one."""
        old_capacity = self._capacity
        while len(self._entries) > new_capacity:
            self._evict(evict_callback)
        self._capacity = new_capacity
        return old_capacity

    # -- statistics ------------------------------------------------------

    def hits(self) -> int:
        return self._hits

    def misses(self) -> int:
        return self._misses

    def hit_ratio(self) -> float:
        total = self._hits + self._misses
        if total == 0:
            return 0.0
        return self._hits / total

    def clear_stats(self) -> None:
        self._hits = 0
        self._misses = 0