from __future__ import annotations

import asyncio
import logging

import pytest

from fetchkit.prefetch import DataPrefetcher, get_prefetcher, reset_prefetcher


def run_async(coro):
    return asyncio.run(coro)


def _counting(value):
    calls = {"count": 0}

    async def fetcher():
        calls["count"] += 1
        return value

    return fetcher, calls


def test_prefetched_value_is_consumed_once():
    async def scenario() -> None:
        prefetcher = DataPrefetcher()
        prefetch_fetcher, _ = _counting("prefetched")
        demand_fetcher, demand_calls = _counting("direct")

        assert await prefetcher.prefetch("k", prefetch_fetcher) == "prefetched"
        assert prefetcher.is_prefetched("k")
        assert not prefetcher.is_prefetching("k")

        assert await prefetcher.get_or_fetch("k", demand_fetcher) == "prefetched"
        assert demand_calls["count"] == 0
        assert not prefetcher.is_prefetched("k")

        assert await prefetcher.get_or_fetch("k", demand_fetcher) == "direct"
        assert demand_calls["count"] == 1

    run_async(scenario())


def test_repeat_prefetch_reuses_buffer_and_in_flight_task():
    async def scenario() -> None:
        prefetcher = DataPrefetcher()
        gate = asyncio.Event()
        calls = 0

        async def fetcher() -> str:
            nonlocal calls
            calls += 1
            await gate.wait()
            return "v"

        first = asyncio.create_task(prefetcher.prefetch("k", fetcher))
        second = asyncio.create_task(prefetcher.prefetch("k", fetcher))
        await asyncio.sleep(0)
        assert prefetcher.is_prefetching("k")

        gate.set()
        assert await asyncio.gather(first, second) == ["v", "v"]
        assert await prefetcher.prefetch("k", fetcher) == "v"
        assert calls == 1

    run_async(scenario())


def test_get_or_fetch_waits_for_in_flight_prefetch():
    async def scenario() -> None:
        prefetcher = DataPrefetcher()
        gate = asyncio.Event()

        async def slow() -> str:
            await gate.wait()
            return "from-prefetch"

        demand_fetcher, demand_calls = _counting("direct")
        prefetcher.prefetch_batch({"k": slow})
        assert prefetcher.is_prefetching("k")

        waiter = asyncio.create_task(prefetcher.get_or_fetch("k", demand_fetcher))
        await asyncio.sleep(0)
        gate.set()

        assert await waiter == "from-prefetch"
        assert demand_calls["count"] == 0
        assert not prefetcher.is_prefetched("k")
        assert not prefetcher.is_prefetching("k")

    run_async(scenario())


def test_failed_prefetch_falls_back_to_direct_fetch(caplog):
    async def scenario() -> None:
        prefetcher = DataPrefetcher()

        async def boom() -> str:
            raise ConnectionError("offline")

        demand_fetcher, demand_calls = _counting("direct")

        with caplog.at_level(logging.ERROR, logger="fetchkit.prefetch"):
            assert await prefetcher.prefetch("k", boom) is None
        assert not prefetcher.is_prefetched("k")
        assert not prefetcher.is_prefetching("k")

        prefetcher.prefetch_batch({"k2": boom})
        assert await prefetcher.get_or_fetch("k2", demand_fetcher) == "direct"
        assert demand_calls["count"] == 1

    run_async(scenario())
    assert any("failed to prefetch k" in r.getMessage() for r in caplog.records)


def test_prefetch_timeout_resolves_none_without_cancelling_fetch():
    async def scenario() -> None:
        prefetcher = DataPrefetcher()
        finished = asyncio.Event()

        async def slow() -> str:
            await asyncio.sleep(0.05)
            finished.set()
            return "late"

        assert await prefetcher.prefetch("k", slow, timeout_s=0.01) is None
        assert not prefetcher.is_prefetching("k")

        await asyncio.wait_for(finished.wait(), timeout=1.0)
        assert not prefetcher.is_prefetched("k")

    run_async(scenario())


def test_direct_fetch_timeout_propagates():
    async def scenario() -> None:
        prefetcher = DataPrefetcher(fetch_timeout_s=0.01)

        async def slow() -> str:
            await asyncio.sleep(1)
            return "never"

        with pytest.raises(asyncio.TimeoutError):
            await prefetcher.get_or_fetch("k", slow)

    run_async(scenario())


def test_prefetch_batch_starts_in_descending_priority_order():
    async def scenario() -> None:
        prefetcher = DataPrefetcher()
        started: list[str] = []

        def make(key: str):
            async def fetcher() -> str:
                started.append(key)
                await asyncio.sleep(0)
                return key

            return fetcher

        tasks = prefetcher.prefetch_batch(
            {key: make(key) for key in ("low", "none", "high", "mid")},
            priorities={"low": 1, "high": 10, "mid": 5},
        )
        assert list(tasks) == ["high", "mid", "low", "none"]
        assert started == []

        results = await asyncio.gather(*tasks.values())
        assert started == ["high", "mid", "low", "none"]
        assert results == ["high", "mid", "low", "none"]
        assert all(prefetcher.is_prefetched(key) for key in tasks)

    run_async(scenario())


def test_prefetch_batch_skips_buffered_and_reuses_in_flight():
    async def scenario() -> None:
        prefetcher = DataPrefetcher()
        buffered, buffered_calls = _counting("b")
        await prefetcher.prefetch("buffered", buffered)

        gate = asyncio.Event()

        async def slow() -> str:
            await gate.wait()
            return "s"

        first = prefetcher.prefetch_batch({"slow": slow})
        second = prefetcher.prefetch_batch({"slow": slow, "buffered": buffered})

        assert second["slow"] is first["slow"]
        assert "buffered" not in second
        assert buffered_calls["count"] == 1

        gate.set()
        await first["slow"]

    run_async(scenario())


def test_cancel_drops_bookkeeping_and_late_result():
    async def scenario() -> None:
        prefetcher = DataPrefetcher()
        gate = asyncio.Event()

        async def slow() -> str:
            await gate.wait()
            return "late"

        tasks = prefetcher.prefetch_batch({"k": slow})
        await asyncio.sleep(0)
        prefetcher.cancel("k")
        assert not prefetcher.is_prefetching("k")

        gate.set()
        assert await tasks["k"] == "late"
        assert not prefetcher.is_prefetched("k")

    run_async(scenario())


def test_cancel_all_clear_cache_and_stats():
    async def scenario() -> None:
        prefetcher = DataPrefetcher()
        ready, _ = _counting("ready")
        await prefetcher.prefetch("ready", ready)

        gate = asyncio.Event()

        async def slow() -> str:
            await gate.wait()
            return "slow"

        tasks = prefetcher.prefetch_batch({"slow": slow})
        stats = prefetcher.get_stats()
        assert stats.cached_items == 1
        assert stats.active_tasks == 1
        assert stats.cached_keys == ["ready"]
        assert stats.active_keys == ["slow"]

        prefetcher.clear_cache()
        assert not prefetcher.is_prefetched("ready")
        assert prefetcher.is_prefetching("slow")

        prefetcher.cancel_all()
        assert prefetcher.get_stats().active_tasks == 0

        gate.set()
        await tasks["slow"]

    run_async(scenario())


def test_default_prefetcher_is_built_from_env(monkeypatch):
    monkeypatch.setenv("FETCHKIT_PREFETCH_TIMEOUT_S", "12")
    reset_prefetcher()
    try:
        first = get_prefetcher()
        assert get_prefetcher() is first
        assert first._prefetch_timeout_s == 12.0  # noqa: SLF001
    finally:
        reset_prefetcher()


def test_invalid_timeouts_are_rejected():
    with pytest.raises(ValueError, match="prefetch_timeout_s"):
        DataPrefetcher(prefetch_timeout_s=0)
    with pytest.raises(ValueError, match="fetch_timeout_s"):
        DataPrefetcher(fetch_timeout_s=-1)
