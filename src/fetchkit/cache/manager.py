"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Read-through TTL cache with in-flight request coalescing.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Generic, TypeVar

from ..metrics import FetchMetrics, NoOpFetchMetrics
from ..types import Fetcher
from .base import CacheEntry, CacheStats
from .coalescing import RequestCoalescer

T = TypeVar("T")

logger = logging.getLogger("fetchkit.cache")


class CacheManager(Generic[T]):
    """
    Process-local key/value cache with per-entry expiry.

    `get_or_fetch` serves live entries directly, joins an in-flight fetch for
    the same key when one exists, and otherwise runs the caller's fetcher
    once. Fetch failures are logged and resolve to ``None``; they never raise
    into the caller.

    Usage::

        profiles: CacheManager[dict] = CacheManager("profiles", ttl_s=30)
        profile = await profiles.get_or_fetch(user_id, lambda: load(user_id))
    """

    def __init__(
        self,
        name: str = "default",
        *,
        ttl_s: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger = logger,
        metrics: FetchMetrics | None = None,
    ) -> None:
        if ttl_s <= 0:
            raise ValueError("ttl_s must be > 0")
        self.name = name
        self.ttl_s = ttl_s
        self._clock = clock
        self._logger = logger
        self._metrics = metrics or NoOpFetchMetrics()
        self._entries: dict[str, CacheEntry[T]] = {}
        self._coalescer: RequestCoalescer[T | None] = RequestCoalescer()
        # Bumped by clear(); fetches started under an older epoch do not store.
        self._epoch = 0
        # Bumped by remove(key); same rule, scoped to one key.
        self._invalidations: dict[str, int] = {}
        self._hits = 0
        self._misses = 0
        self._coalesced = 0
        self._failures = 0

    def get(self, key: str) -> T | None:
        """Return the live value for `key`, purging it if expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._record_miss()
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._logger.debug("Cache[%s]: expired %s", self.name, key)
            self._record_miss()
            return None

        self._hits += 1
        self._metrics.incr("cache_hits", tags={"cache": self.name})
        self._logger.debug("Cache[%s]: hit %s", self.name, key)
        return entry.value

    def set(self, key: str, value: T) -> None:
        self._entries[key] = CacheEntry(
            value=value, expires_at_s=self._clock() + self.ttl_s
        )
        self._logger.debug("Cache[%s]: stored %s (ttl=%ss)", self.name, key, self.ttl_s)

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Fetcher[T],
    ) -> T | None:
        """
        Return the cached value for `key`, fetching it at most once concurrently.

        Args:
            key: Cache key.
            fetcher: Coroutine factory invoked on a miss with no fetch in flight.

        Returns:
            The cached or fetched value, or ``None`` when the fetcher returned
            ``None`` or failed.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        if self._coalescer.is_pending(key):
            self._coalesced += 1
            self._metrics.incr("cache_coalesced", tags={"cache": self.name})
            self._logger.debug("Cache[%s]: deduplicating request for %s", self.name, key)
        else:
            self._logger.debug("Cache[%s]: fetching %s", self.name, key)

        version = (self._epoch, self._invalidations.get(key, 0))
        return await self._coalescer.run(
            key, lambda: self._fetch_and_store(key, fetcher, version)
        )

    def remove(self, key: str) -> None:
        """Drop `key`; a fetch already in flight for it will not store its result."""
        self._entries.pop(key, None)
        if self._coalescer.is_pending(key):
            self._coalescer.forget(key)
            self._invalidations[key] = self._invalidations.get(key, 0) + 1
        self._logger.debug("Cache[%s]: removed %s", self.name, key)

    def clear(self) -> None:
        """Drop every entry and forget in-flight fetches."""
        count = len(self._entries)
        self._entries.clear()
        self._coalescer.forget_all()
        self._invalidations.clear()
        self._epoch += 1
        self._logger.debug("Cache[%s]: cleared %d entries", self.name, count)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> CacheStats:
        return CacheStats(
            name=self.name,
            size=len(self._entries),
            pending_count=self._coalescer.pending_count,
            ttl_s=self.ttl_s,
            hits=self._hits,
            misses=self._misses,
            coalesced=self._coalesced,
            failures=self._failures,
        )

    async def _fetch_and_store(
        self,
        key: str,
        fetcher: Fetcher[T],
        version: tuple[int, int],
    ) -> T | None:
        try:
            value = await fetcher()
        except Exception:
            self._failures += 1
            self._metrics.incr("cache_fetch_failures", tags={"cache": self.name})
            self._logger.exception("Cache[%s]: fetch failed for %s", self.name, key)
            return None

        current = (self._epoch, self._invalidations.get(key, 0))
        if value is not None and version == current:
            self.set(key, value)
        return value

    def _record_miss(self) -> None:
        self._misses += 1
        self._metrics.incr("cache_misses", tags={"cache": self.name})
