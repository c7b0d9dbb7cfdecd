#!/usr/bin/env python3
"""
Batch write / read benchmark for throughput characterization.

Usage examples:
  PYTHONPATH=src python scripts/batch_benchmark.py --backend inmemory
  PYTHONPATH=src python scripts/batch_benchmark.py --backend redis --redis-url redis://localhost:6379/0
"""

from __future__ import annotations

import argparse
import asyncio
import time
import uuid

from fetchkit import BatchOperationHelper, InMemoryDocumentStore, SetOperation
from fetchkit.store import RedisDocumentStore


async def run_benchmark(
    *,
    backend: str,
    num_docs: int,
    max_batch_size: int,
    redis_url: str | None,
) -> None:
    if backend == "inmemory":
        store = InMemoryDocumentStore()
    elif backend == "redis":
        if not redis_url:
            raise ValueError("--redis-url is required for redis backend")
        import redis.asyncio as redis

        client = redis.Redis.from_url(redis_url)
        store = RedisDocumentStore(client, prefix=f"bench:{uuid.uuid4().hex}")
    else:
        raise ValueError(f"Unsupported backend: {backend}")

    helper = BatchOperationHelper(store, max_batch_size=max_batch_size)
    refs = [store.doc(f"bench/{i:08d}") for i in range(num_docs)]

    started = time.perf_counter()
    await helper.execute_batch(
        [SetOperation(ref, {"n": i}) for i, ref in enumerate(refs)],
        operation_name="bench write",
    )
    write_s = time.perf_counter() - started

    started = time.perf_counter()
    snapshots = await helper.batch_read(refs)
    read_s = time.perf_counter() - started

    started = time.perf_counter()
    pages = 0
    async for _ in helper.get_paginated_documents(store.collection("bench"), 100):
        pages += 1
    page_s = time.perf_counter() - started

    print(f"backend={backend} docs={num_docs} max_batch_size={max_batch_size}")
    print(f"write: {write_s:.3f}s ({num_docs / max(write_s, 1e-9):.0f} ops/s)")
    print(f"read:  {read_s:.3f}s ({len(snapshots)} docs)")
    print(f"pages: {page_s:.3f}s ({pages} pages of 100)")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--backend", choices=("inmemory", "redis"), default="inmemory")
    parser.add_argument("--num-docs", type=int, default=5000)
    parser.add_argument("--max-batch-size", type=int, default=500)
    parser.add_argument("--redis-url", default=None)
    args = parser.parse_args()

    asyncio.run(
        run_benchmark(
            backend=args.backend,
            num_docs=args.num_docs,
            max_batch_size=args.max_batch_size,
            redis_url=args.redis_url,
        )
    )


if __name__ == "__main__":
    main()
