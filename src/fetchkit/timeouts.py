"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Timeout helpers shared by the cache and prefetch layers.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any, TypeVar

T = TypeVar("T")


async def await_with_timeout(awaitable: Awaitable[T], timeout_s: float | None) -> T:
    """Await value with optional timeout; the awaitable is cancelled on expiry."""
    if timeout_s is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=timeout_s)


async def await_abandoning(awaitable: Awaitable[T], timeout_s: float | None) -> T:
    """
    Await value with optional timeout without cancelling the underlying work.

    On expiry ``asyncio.TimeoutError`` is raised and the inner future keeps
    running to completion in the background; its outcome is discarded.
    """
    inner: asyncio.Future[T] = asyncio.ensure_future(awaitable)
    if timeout_s is None:
        return await inner
    try:
        return await asyncio.wait_for(asyncio.shield(inner), timeout=timeout_s)
    except (asyncio.TimeoutError, asyncio.CancelledError):
        inner.add_done_callback(_discard_outcome)
        raise


def _discard_outcome(future: asyncio.Future[Any]) -> None:
    """Retrieve an abandoned future's exception so asyncio does not warn."""
    if not future.cancelled():
        future.exception()
