"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/__init__.py.
"""

from .base import CacheEntry, CacheStats
from .coalescing import RequestCoalescer
from .manager import CacheManager

__all__ = [
    "CacheEntry",
    "CacheStats",
    "RequestCoalescer",
    "CacheManager",
]
