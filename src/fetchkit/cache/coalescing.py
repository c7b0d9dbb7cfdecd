"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/coalescing.py.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Generic, TypeVar

T = TypeVar("T")


class RequestCoalescer(Generic[T]):
    """
    Deduplicate identical in-flight requests.

    The lookup and registration of a pending task happen without an
    intervening await, so no lock is needed on a single event loop. Waiters
    are shielded: cancelling one caller never cancels the shared task.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[T]] = {}

    def is_pending(self, key: str) -> bool:
        return key in self._tasks

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    def pending_keys(self) -> list[str]:
        return list(self._tasks)

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        existing = self._tasks.get(key)
        if existing is not None:
            return await asyncio.shield(existing)

        task: asyncio.Task[T] = asyncio.ensure_future(factory())
        self._tasks[key] = task
        task.add_done_callback(partial(self._release, key))
        return await asyncio.shield(task)

    def forget(self, key: str) -> None:
        """Drop bookkeeping for `key`; the task itself keeps running."""
        self._tasks.pop(key, None)

    def forget_all(self) -> None:
        self._tasks.clear()

    def _release(self, key: str, task: asyncio.Task[T]) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
