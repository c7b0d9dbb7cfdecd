from __future__ import annotations

import asyncio

import pytest

from fetchkit.timeouts import await_abandoning, await_with_timeout


def run_async(coro):
    return asyncio.run(coro)


def test_await_with_timeout_without_limit_returns_value():
    async def scenario() -> None:
        async def work() -> int:
            await asyncio.sleep(0)
            return 7

        assert await await_with_timeout(work(), None) == 7
        assert await await_with_timeout(work(), 1.0) == 7

    run_async(scenario())


def test_await_with_timeout_cancels_work_on_expiry():
    async def scenario() -> None:
        cancelled = asyncio.Event()

        async def slow() -> int:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return 1

        with pytest.raises(asyncio.TimeoutError):
            await await_with_timeout(slow(), 0.01)
        assert cancelled.is_set()

    run_async(scenario())


def test_await_abandoning_leaves_work_running():
    async def scenario() -> None:
        release = asyncio.Event()
        finished: list[str] = []

        async def slow() -> str:
            await release.wait()
            finished.append("done")
            return "late"

        with pytest.raises(asyncio.TimeoutError):
            await await_abandoning(slow(), 0.01)

        release.set()
        for _ in range(5):
            await asyncio.sleep(0)
        assert finished == ["done"]

    run_async(scenario())


def test_await_abandoning_discards_late_failure_quietly():
    async def scenario() -> None:
        release = asyncio.Event()

        async def slow() -> str:
            await release.wait()
            raise RuntimeError("too late")

        with pytest.raises(asyncio.TimeoutError):
            await await_abandoning(slow(), 0.01)

        release.set()
        for _ in range(5):
            await asyncio.sleep(0)

    run_async(scenario())
