"""Regex filtering of stat keys, with an epoch-validated result cache."""

from __future__ import annotations

import re
import threading
import time
from typing import Any, Iterable, MutableMapping, Optional

REGEX_CACHE_LIMIT = 20000
REGEX_LENGTH_LIMIT = 1024 * 1024
TIME_ZERO = 0.0
ONE_DAY = 24 * 60 * 60.0


def filter_regex_keys(keys: Iterable[str], regex: str) -> list[str]:
    """Return the keys that match the whole of ``regex``, in their order."""
    pattern = re.compile(regex)
    return [key for key in keys if pattern.fullmatch(key)]


def cache_regex_keys(
    keys: Iterable[str],
    regex: str,
    cache: MutableMapping[str, list[str]],
) -> bool:
    """Store the matching keys for ``regex`` in ``cache``.

    Nothing is stored when the regex is too long or the cache would grow
    beyond its size limit; the return value tells whether it was stored.
    """
    if len(regex) > REGEX_LENGTH_LIMIT:
        return False
    matched = list(keys)
    cached_size = sum(len(values) for values in cache.values())
    if cached_size + len(matched) > REGEX_CACHE_LIMIT:
        return False
    cache[regex] = matched
    return True


class KeyedStore:
    """A keyed map guarded by a lock, with a regex result cache.

    Writers hold ``lock`` while changing ``entries`` and call
    ``bump_epoch`` so cached regex results are known to be stale.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.entries: dict[str, Any] = {}
        self.regex_cache: dict[str, list[str]] = {}
        self.map_epoch = 0
        self.cache_epoch = 0
        self.cache_clear_time = TIME_ZERO

    def bump_epoch(self) -> None:
        """Mark the key set as changed."""
        self.map_epoch += 1

    def _sorted_keys(self) -> list[str]:
        return sorted(self.entries)

    def regex_keys(self, regex: str, now: Optional[float] = None) -> list[str]:
        """Return the present keys that fully match ``regex``, sorted."""
        if now is None:
            now = time.time()

        force_clear = False
        with self.lock:
            orig_epoch = self.map_epoch
            if (
                self.cache_clear_time != TIME_ZERO
                and now - self.cache_clear_time >= ONE_DAY
            ):
                force_clear = True
            else:
                if orig_epoch == self.cache_epoch:
                    cached = self.regex_cache.get(regex)
                    if cached is not None:
                        return list(cached)
                want_keys = self._sorted_keys()

        if force_clear:
            with self.lock:
                matched = filter_regex_keys(self._sorted_keys(), regex)
                self.regex_cache.clear()
                self.cache_epoch = self.map_epoch
                self.cache_clear_time = now
                cache_regex_keys(matched, regex, self.regex_cache)
                return list(matched)

        matched = filter_regex_keys(want_keys, regex)

        if orig_epoch != self.map_epoch:
            return matched

        with self.lock:
            if orig_epoch == self.map_epoch:
                if orig_epoch != self.cache_epoch:
                    self.regex_cache.clear()
                    self.cache_epoch = orig_epoch
                    self.cache_clear_time = now
                cache_regex_keys(matched, regex, self.regex_cache)
        return list(matched)