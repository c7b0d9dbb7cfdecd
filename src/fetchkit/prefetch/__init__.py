"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Speculative background prefetching with a single-use result buffer.
"""

from .prefetcher import (
    DataPrefetcher,
    PrefetchStats,
    PrefetchTask,
    get_prefetcher,
    reset_prefetcher,
)

__all__ = [
    "DataPrefetcher",
    "PrefetchStats",
    "PrefetchTask",
    "get_prefetcher",
    "reset_prefetcher",
]
