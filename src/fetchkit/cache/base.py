"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/base.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """One cached value with its absolute expiry on the manager's clock."""
    value: T
    expires_at_s: float

    def is_expired(self, now_s: float) -> bool:
        return now_s > self.expires_at_s


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Point-in-time snapshot of one cache manager."""
    name: str
    size: int
    pending_count: int
    ttl_s: float
    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    failures: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0
