"""Export of quantile stats as named integer counters.

A quantile stat produces estimates (sum, count and quantiles) over its
whole lifetime and over a set of sliding windows.  The map expands each
registered stat into flat counter names such as ``MyStat.p99.60`` and
computes their values on demand.
"""

from __future__ import annotations

import enum
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Protocol, Sequence

from .regex_util import KeyedStore

INT64_MAX = 2**63 - 1
INT64_MIN = -(2**63)


class ExportType(enum.IntEnum):
    """Kind of value exported for a stat."""

    SUM = 0
    COUNT = 1
    AVG = 2
    RATE = 3
    PERCENT = 4


@dataclass(frozen=True)
class StatDef:
    """One exported value: its type and, for PERCENT, the quantile."""

    type: ExportType = ExportType.SUM
    quantile: float = 0.0


@dataclass
class QuantileEstimates:
    """Sum, count and ``(quantile, value)`` pairs for one period."""

    sum: float = 0.0
    count: float = 0.0
    quantiles: list[tuple[float, float]] = field(default_factory=list)


@dataclass
class SlidingWindowEstimate:
    """Estimates over ``n_windows`` windows of ``window_length`` seconds."""

    estimate: QuantileEstimates
    window_length: int
    n_windows: int

    def sliding_window_length(self) -> int:
        """Total length covered, in seconds."""
        return self.window_length * self.n_windows


@dataclass
class Estimates:
    """All-time estimates and one entry per sliding window."""

    all_time_estimate: QuantileEstimates = field(default_factory=QuantileEstimates)
    sliding_windows: list[SlidingWindowEstimate] = field(default_factory=list)


@dataclass
class SnapshotEntry:
    """A stat's name, its snapshot and the values it exports."""

    name: str
    snapshot: Any
    stat_defs: list[StatDef]


class QuantileStat(Protocol):
    """What the map needs from a registered stat."""

    def get_estimates(self, quantiles: Sequence[float], now: float) -> Estimates: ...

    def creation_time(self) -> float: ...

    def get_sliding_window_lengths(self) -> list[int]: ...

    def get_snapshot(self, now: float) -> Any: ...

    def flush(self) -> None: ...


def stat_duration(
    sliding_window_length: Optional[int], creation_time: float, now: float
) -> int:
    """Whole seconds the value covers: the stat's age, capped by the window."""
    diff = int(now - creation_time)
    if sliding_window_length is None or sliding_window_length > diff:
        return diff
    return sliding_window_length


def make_key(
    base: str, stat_def: StatDef, sliding_window_length: Optional[int] = None
) -> str:
    """Build the exported counter name for a stat value."""
    tail = "" if sliding_window_length is None else f".{sliding_window_length}"
    kind = stat_def.type
    if kind is ExportType.PERCENT:
        return f"{base}.p{format(stat_def.quantile * 100.0, 'g')}{tail}"
    if kind is ExportType.SUM:
        return f"{base}.sum{tail}"
    if kind is ExportType.COUNT:
        return f"{base}.count{tail}"
    if kind is ExportType.AVG:
        return f"{base}.avg{tail}"
    if kind is ExportType.RATE:
        return f"{base}.rate{tail}"
    raise ValueError(f"Unknown export type: {kind!r}")


def _extract_raw(
    stat_def: StatDef,
    estimate: QuantileEstimates,
    duration: int,
    use_count_for_rate: bool,
) -> float:
    kind = stat_def.type
    if kind is ExportType.PERCENT:
        for quantile, value in estimate.quantiles:
            if quantile == stat_def.quantile:
                return value
        raise KeyError(f"Requested missing quantile: {stat_def.quantile}")
    if kind is ExportType.SUM:
        return estimate.sum
    if kind is ExportType.COUNT:
        return estimate.count
    if kind is ExportType.AVG:
        if estimate.count > 0:
            return estimate.sum / estimate.count
        return 0.0
    if kind is ExportType.RATE:
        if duration > 0:
            numerator = estimate.count if use_count_for_rate else estimate.sum
            return numerator / duration
        return estimate.count
    raise ValueError(f"Unknown export type: {kind!r}")


def _clamp_to_int64(value: float) -> int:
    if math.isnan(value):
        return 0
    if value >= INT64_MAX:
        return INT64_MAX
    if value <= INT64_MIN:
        return INT64_MIN
    return int(value)


def extract_value(
    stat_def: StatDef,
    estimate: QuantileEstimates,
    duration: int,
    use_count_for_rate: bool = False,
) -> int:
    """Compute the exported integer for ``stat_def`` from ``estimate``.

    Rates divide by ``duration`` seconds, using the sum of samples unless
    ``use_count_for_rate`` is set.  The result saturates at 64-bit limits.
    """
    return _clamp_to_int64(
        _extract_raw(stat_def, estimate, duration, use_count_for_rate)
    )


@dataclass
class _CounterEntry:
    stat: QuantileStat
    stat_def: StatDef
    sliding_window_length: Optional[int] = None


@dataclass
class _BaseEntry:
    stat: QuantileStat
    stat_defs: list[StatDef]


class QuantileStatMap:
    """Registry of quantile stats exported as flat integer counters."""

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        use_count_for_rate: bool = False,
    ) -> None:
        self._clock = clock or time.monotonic
        self._use_count_for_rate = use_count_for_rate
        self._store = KeyedStore()
        self._bases: dict[str, _BaseEntry] = {}

    def _extract(
        self, stat_def: StatDef, estimate: QuantileEstimates, duration: int
    ) -> int:
        return extract_value(stat_def, estimate, duration, self._use_count_for_rate)

    @staticmethod
    def _quantiles_of(stat_defs: Iterable[StatDef]) -> list[float]:
        return [d.quantile for d in stat_defs if d.type is ExportType.PERCENT]

    def get_value(self, key: str) -> Optional[int]:
        """Return the current value of one counter, or None if unknown."""
        with self._store.lock:
            entry: Optional[_CounterEntry] = self._store.entries.get(key)
        if entry is None:
            return None
        now = self._clock()
        estimates = entry.stat.get_estimates(self._quantiles_of([entry.stat_def]), now)

        estimate: Optional[QuantileEstimates] = None
        if entry.sliding_window_length is not None:
            for window in estimates.sliding_windows:
                if window.sliding_window_length() == entry.sliding_window_length:
                    estimate = window.estimate
                    break
        else:
            estimate = estimates.all_time_estimate
        if estimate is None:
            return None

        duration = stat_duration(
            entry.sliding_window_length, entry.stat.creation_time(), now
        )
        return self._extract(entry.stat_def, estimate, duration)

    def _add_values(
        self,
        name: str,
        stat_def: StatDef,
        estimates: Estimates,
        time_since_creation: int,
        out: dict[str, int],
    ) -> None:
        out.setdefault(
            make_key(name, stat_def),
            self._extract(stat_def, estimates.all_time_estimate, time_since_creation),
        )
        for window in estimates.sliding_windows:
            length = window.sliding_window_length()
            duration = min(length, time_since_creation)
            out.setdefault(
                make_key(name, stat_def, length),
                self._extract(stat_def, window.estimate, duration),
            )

    def get_values(self) -> dict[str, int]:
        """Return every exported counter, sorted by name."""
        now = self._clock()
        out: dict[str, int] = {}
        with self._store.lock:
            for name, base in self._bases.items():
                estimates = base.stat.get_estimates(
                    self._quantiles_of(base.stat_defs), now
                )
                since = int(now - base.stat.creation_time())
                for stat_def in base.stat_defs:
                    self._add_values(name, stat_def, estimates, since, out)
        return dict(sorted(out.items()))

    def get_selected_values(self, keys: Iterable[str]) -> dict[str, int]:
        """Return the values of the named counters that exist."""
        grouped: dict[int, tuple[QuantileStat, list[tuple[str, _CounterEntry]]]] = {}
        with self._store.lock:
            for key in keys:
                entry = self._store.entries.get(key)
                if entry is not None:
                    group = grouped.setdefault(id(entry.stat), (entry.stat, []))
                    group[1].append((key, entry))

        now = self._clock()
        out: dict[str, int] = {}
        for stat, pairs in grouped.values():
            estimates = stat.get_estimates(
                self._quantiles_of(e.stat_def for _, e in pairs), now
            )
            since = int(now - stat.creation_time())
            for key, entry in pairs:
                if entry.sliding_window_length is not None:
                    for window in estimates.sliding_windows:
                        length = window.sliding_window_length()
                        if length == entry.sliding_window_length:
                            out[key] = self._extract(
                                entry.stat_def, window.estimate, min(length, since)
                            )
                            break
                else:
                    out[key] = self._extract(
                        entry.stat_def, estimates.all_time_estimate, since
                    )
        return dict(sorted(out.items()))

    def get(self, name: str) -> Optional[QuantileStat]:
        """Return the stat registered under base ``name``, or None."""
        with self._store.lock:
            base = self._bases.get(name)
        return None if base is None else base.stat

    def contains(self, name: str) -> bool:
        """True if ``name`` is an exported counter name."""
        with self._store.lock:
            return name in self._store.entries

    def get_keys(self) -> list[str]:
        """Return all exported counter names, sorted."""
        with self._store.lock:
            return sorted(self._store.entries)

    def get_regex_keys(self, regex: str) -> list[str]:
        """Return exported counter names fully matching ``regex``."""
        return self._store.regex_keys(regex)

    def get_num_keys(self) -> int:
        with self._store.lock:
            return len(self._store.entries)

    def get_snapshot_entry(
        self, name: str, now: Optional[float] = None
    ) -> Optional[SnapshotEntry]:
        """Return a snapshot of the stat under base ``name``, or None."""
        if now is None:
            now = self._clock()
        with self._store.lock:
            base = self._bases.get(name)
            if base is None:
                return None
            return SnapshotEntry(
                name=name,
                snapshot=base.stat.get_snapshot(now),
                stat_defs=list(base.stat_defs),
            )

    def register_quantile_stat(
        self, name: str, stat: QuantileStat, stat_defs: Iterable[StatDef]
    ) -> QuantileStat:
        """Register ``stat`` under ``name``; an existing stat wins."""
        defs = list(stat_defs)
        with self._store.lock:
            existing = self._bases.get(name)
            if existing is not None:
                return existing.stat
            entries = self._store.entries
            for stat_def in defs:
                entries.setdefault(make_key(name, stat_def), _CounterEntry(stat, stat_def))
                for length in stat.get_sliding_window_lengths():
                    entries.setdefault(
                        make_key(name, stat_def, length),
                        _CounterEntry(stat, stat_def, length),
                    )
                self._store.bump_epoch()
            self._bases[name] = _BaseEntry(stat, defs)
            return stat

    def flush_all(self) -> None:
        """Ask every registered stat to flush its buffered values."""
        with self._store.lock:
            stats = [entry.stat for entry in self._store.entries.values()]
        for stat in stats:
            if stat is not None:
                stat.flush()

    def forget_all(self) -> None:
        """Drop every registered stat and counter."""
        with self._store.lock:
            self._store.entries.clear()
            self._bases.clear()
            self._store.bump_epoch()