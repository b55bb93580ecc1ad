"""Helpers for counter limits carried in request and response headers."""

from __future__ import annotations

import re
from typing import Mapping, MutableMapping, Optional

COUNTERS_AVAILABLE_HEADER = "fb303_counters_available"

_INT_RE = re.compile(r"\s*[+-]?[0-9]+")
_INT_MAX = 2**31 - 1


def read_limit_header(
    headers: Optional[Mapping[str, str]], key: str
) -> Optional[int]:
    """Return the non-negative integer limit stored under ``key``, if any."""
    if headers is None:
        return None
    raw = headers.get(key)
    if raw is None or not _INT_RE.fullmatch(raw):
        return None
    limit = int(raw)
    if limit < 0 or limit > _INT_MAX:
        return None
    return limit


def add_counters_available(
    headers: Optional[MutableMapping[str, str]], available: int
) -> None:
    """Record how many counters were available, unless already recorded."""
    if headers is None:
        return
    headers.setdefault(COUNTERS_AVAILABLE_HEADER, str(available))