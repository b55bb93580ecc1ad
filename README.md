# servstats

Building blocks for exporting statistics from a long-running service.
Everything lives in memory; values are computed when they are read.

## Modules

- `servstats.callback_values_map`: `CallbackValuesMap` maps names to
  callables that are invoked when a value is read. Callbacks run outside
  the map's lock. `DynamicCounters` adds `get_counters` and
  `get_counter` for integer values; `DynamicStrings` holds string values.
  `get_callback` returns the `CallbackEntry` for a name, whose
  `get_value` returns None once the entry has been cleared.
- `servstats.regex_util`: `KeyedStore` is a locked key/value store whose
  `regex_keys` results are cached until the key set changes
  (`bump_epoch`); the whole cache is rebuilt at most once a day.
  `filter_regex_keys` keeps the keys that fully match a pattern and
  `cache_regex_keys` stores a result unless the cache would exceed
  20000 keys or the pattern is longer than 1 MiB.
- `servstats.limits`: `read_limit_header(headers, key)` returns a
  non-negative integer limit from a header mapping, or None when it is
  missing, negative or not an integer. `add_counters_available(headers,
  available)` records the number of available counters under
  `COUNTERS_AVAILABLE_HEADER`, unless it is already set.
- `servstats.lru_map`: `SimpleLRUMap` is a bounded map with
  least-recently-used eviction, optional eviction callbacks and hit/miss
  statistics. `set` and `get_or_create` raise `CapacityError` when the
  capacity is zero; `try_set` returns a `SetResult` instead.
- `servstats.quantile_stat_map`: `QuantileStatMap` exports the
  quantile, sum, count, average and rate values of registered stats as
  integer counters named like `name.p99`, `name.avg.60` or
  `name.count`. `make_key`, `extract_value` and `stat_duration` are the
  functions behind those names and values.

## Examples

```python
from servstats.callback_values_map import DynamicCounters

counters = DynamicCounters()
counters.register_callback("requests", lambda: 42)

counters.get_counter("requests")   # 42
counters.get_counters()            # {"requests": 42}
counters.get_regex_keys("req.*")   # ["requests"]
counters.unregister_callback("requests")   # True
```

```python
from servstats.lru_map import SimpleLRUMap

cache = SimpleLRUMap(2)
cache.set("a", 1)
cache.set("b", 2)
cache.set("c", 3)                  # evicts "a"
"a" in dict(cache.items())         # False
```

```python
from servstats.quantile_stat_map import ExportType, StatDef, make_key

make_key("latency", StatDef(ExportType.PERCENT, 0.99), 60)   # "latency.p99.60"
make_key("latency", StatDef(ExportType.AVG))                 # "latency.avg"
```

## What it does not do

`QuantileStatMap` does not estimate quantiles itself. The stats you
register must provide `get_estimates(quantiles, now)` returning an
`Estimates`, `creation_time()`, `get_sliding_window_lengths()`,
`get_snapshot(now)` and `flush()`. The package has no digest or
timeseries implementation, no histograms, no per-thread stat
aggregation, no network service for serving counters and no command.

## Installing and testing

```
pip install .
pip install ".[test]"
pytest
```