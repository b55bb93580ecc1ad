"""In-process service statistics: callback counters, regex key caching, limit headers, LRU maps and quantile stat maps."""

__version__ = "0.1.0"

__all__ = [
    "callback_values_map",
    "limits",
    "lru_map",
    "quantile_stat_map",
    "regex_util",
]