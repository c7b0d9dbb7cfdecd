"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Speculative, priority-ordered background prefetching.

Prefetches never block the caller's critical path: a failed or timed-out
prefetch resolves to ``None`` and the later demand read simply fetches again.
Results land in a single-use buffer that the first `get_or_fetch` consumes.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from functools import partial
from typing import Any, TypeVar

from ..metrics import FetchMetrics, NoOpFetchMetrics
from ..settings import FetchKitSettings
from ..timeouts import await_abandoning, await_with_timeout

T = TypeVar("T")

logger = logging.getLogger("fetchkit.prefetch")


@dataclass(slots=True)
class PrefetchTask:
    """Bookkeeping for one in-flight prefetch."""

    key: str
    priority: int
    task: asyncio.Task[Any]
    start_time: float


@dataclass(frozen=True, slots=True)
class PrefetchStats:
    """Point-in-time snapshot of the prefetch buffer and active tasks."""

    cached_items: int
    active_tasks: int
    cached_keys: list[str] = field(default_factory=list)
    active_keys: list[str] = field(default_factory=list)


class DataPrefetcher:
    """
    Background prefetch scheduler with a single-consumer result buffer.

    Args:
        prefetch_timeout_s: Default timeout applied to each prefetch task.
        fetch_timeout_s: Default timeout applied to direct (non-prefetched)
            fetches in `get_or_fetch`.
        clock: Monotonic clock used for task timing.
        logger: Logger override; defaults to ``fetchkit.prefetch``.
        metrics: Counter sink; defaults to a no-op.
    """

    def __init__(
        self,
        *,
        prefetch_timeout_s: float = 30.0,
        fetch_timeout_s: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger = logger,
        metrics: FetchMetrics | None = None,
    ) -> None:
        if prefetch_timeout_s <= 0:
            raise ValueError("prefetch_timeout_s must be > 0")
        if fetch_timeout_s <= 0:
            raise ValueError("fetch_timeout_s must be > 0")
        self._prefetch_timeout_s = prefetch_timeout_s
        self._fetch_timeout_s = fetch_timeout_s
        self._clock = clock
        self._logger = logger
        self._metrics = metrics or NoOpFetchMetrics()
        self._tasks: dict[str, PrefetchTask] = {}
        self._prefetched: dict[str, Any] = {}

    @classmethod
    def from_settings(cls, settings: FetchKitSettings, **kwargs: Any) -> "DataPrefetcher":
        return cls(
            prefetch_timeout_s=settings.prefetch_timeout_s,
            fetch_timeout_s=settings.fetch_timeout_s,
            **kwargs,
        )

    async def prefetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        *,
        priority: int = 0,
        timeout_s: float | None = None,
    ) -> T | None:
        """
        Prefetch `key` unless it is already buffered or in flight.

        Returns the buffered value, the in-flight task's result, or the result
        of a newly started task. Failures and timeouts resolve to ``None``.
        """
        if key in self._prefetched:
            self._logger.debug("DataPrefetcher: using buffered prefetch for %s", key)
            return self._prefetched[key]

        existing = self._tasks.get(key)
        if existing is not None:
            self._logger.debug("DataPrefetcher: waiting for existing prefetch %s", key)
            return await asyncio.shield(existing.task)

        task = self._start(key, fetcher, priority=priority, timeout_s=timeout_s)
        return await asyncio.shield(task)

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        *,
        timeout_s: float | None = None,
    ) -> T:
        """
        Consume a prefetched value for `key`, or fetch it directly.

        A buffered value is removed on return. Errors and timeouts from the
        direct fetch propagate to the caller.
        """
        if key in self._prefetched:
            self._metrics.incr("prefetch_hits")
            self._logger.debug("DataPrefetcher: instant return for %s (prefetched)", key)
            return self._prefetched.pop(key)

        entry = self._tasks.get(key)
        if entry is not None:
            self._logger.debug("DataPrefetcher: waiting for prefetch of %s", key)
            result = await asyncio.shield(entry.task)
            if result is not None:
                self._prefetched.pop(key, None)
                self._metrics.incr("prefetch_hits")
                return result

        self._logger.debug("DataPrefetcher: fetching %s (not prefetched)", key)
        timeout = self._fetch_timeout_s if timeout_s is None else timeout_s
        return await await_with_timeout(fetcher(), timeout)

    def prefetch_batch(
        self,
        fetchers: Mapping[str, Callable[[], Awaitable[Any]]],
        priorities: Mapping[str, int] | None = None,
    ) -> dict[str, asyncio.Task[Any]]:
        """
        Schedule many prefetches without awaiting them.

        Tasks are created in descending priority order (ties keep mapping
        order), so higher-priority fetchers start first. Must be called from a
        running event loop. Keys already buffered are skipped; keys already in
        flight map to their existing task.
        """
        priorities = priorities or {}
        ordered = sorted(fetchers, key=lambda k: priorities.get(k, 0), reverse=True)
        self._logger.debug("DataPrefetcher: batch prefetch %d items", len(ordered))

        scheduled: dict[str, asyncio.Task[Any]] = {}
        for key in ordered:
            if key in self._prefetched:
                continue
            existing = self._tasks.get(key)
            if existing is not None:
                scheduled[key] = existing.task
                continue
            scheduled[key] = self._start(
                key, fetchers[key], priority=priorities.get(key, 0), timeout_s=None
            )
        return scheduled

    def cancel(self, key: str) -> None:
        """Forget `key`; a request already on the wire is not aborted."""
        self._tasks.pop(key, None)
        self._prefetched.pop(key, None)
        self._logger.debug("DataPrefetcher: cancelled %s", key)

    def cancel_all(self) -> None:
        count = len(self._tasks)
        self._tasks.clear()
        self._prefetched.clear()
        self._logger.debug("DataPrefetcher: cancelled all (%d tasks)", count)

    def clear_cache(self) -> None:
        count = len(self._prefetched)
        self._prefetched.clear()
        self._logger.debug("DataPrefetcher: cleared buffer (%d items)", count)

    def is_prefetched(self, key: str) -> bool:
        return key in self._prefetched

    def is_prefetching(self, key: str) -> bool:
        return key in self._tasks

    def get_stats(self) -> PrefetchStats:
        return PrefetchStats(
            cached_items=len(self._prefetched),
            active_tasks=len(self._tasks),
            cached_keys=list(self._prefetched),
            active_keys=list(self._tasks),
        )

    def _start(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        *,
        priority: int,
        timeout_s: float | None,
    ) -> asyncio.Task[Any]:
        """Register and start one prefetch task; no await between check and insert."""
        timeout = self._prefetch_timeout_s if timeout_s is None else timeout_s
        self._logger.debug(
            "DataPrefetcher: starting prefetch for %s (priority=%d)", key, priority
        )
        self._metrics.incr("prefetch_started")
        task = asyncio.ensure_future(self._run(key, fetcher, timeout))
        entry = PrefetchTask(
            key=key, priority=priority, task=task, start_time=self._clock()
        )
        self._tasks[key] = entry
        task.add_done_callback(partial(self._release, entry))
        return task

    async def _run(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        timeout_s: float,
    ) -> Any:
        try:
            data = await await_abandoning(fetcher(), timeout_s)
        except asyncio.TimeoutError:
            self._metrics.incr("prefetch_failures", tags={"reason": "timeout"})
            self._logger.warning(
                "DataPrefetcher: prefetch of %s timed out after %ss", key, timeout_s
            )
            return None
        except Exception:
            self._metrics.incr("prefetch_failures", tags={"reason": "error"})
            self._logger.exception("DataPrefetcher: failed to prefetch %s", key)
            return None

        entry = self._tasks.get(key)
        if entry is None or entry.task is not asyncio.current_task():
            # Cancelled while in flight; the result is dropped.
            return data

        self._prefetched[key] = data
        self._logger.debug(
            "DataPrefetcher: completed %s in %.1fms",
            key,
            (self._clock() - entry.start_time) * 1000,
        )
        return data

    def _release(self, entry: PrefetchTask, task: asyncio.Task[Any]) -> None:
        if self._tasks.get(entry.key) is entry:
            del self._tasks[entry.key]


_DEFAULT_PREFETCHER: DataPrefetcher | None = None
_DEFAULT_PREFETCHER_LOCK = threading.Lock()


def get_prefetcher() -> DataPrefetcher:
    """Return the process-wide default prefetcher, built from environment settings."""
    global _DEFAULT_PREFETCHER
    if _DEFAULT_PREFETCHER is not None:
        return _DEFAULT_PREFETCHER
    with _DEFAULT_PREFETCHER_LOCK:
        if _DEFAULT_PREFETCHER is None:
            _DEFAULT_PREFETCHER = DataPrefetcher.from_settings(FetchKitSettings.from_env())
    return _DEFAULT_PREFETCHER


def reset_prefetcher() -> None:
    """Reset the default prefetcher (for tests)."""
    global _DEFAULT_PREFETCHER
    with _DEFAULT_PREFETCHER_LOCK:
        _DEFAULT_PREFETCHER = None
