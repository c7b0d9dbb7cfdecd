"""
cached_reads.py: Minimal fetchkit example.

Demonstrates cached profile reads with coalescing, a prefetch consumed by a
later demand read, a paginated list, and a chunked batch write against the
in-memory document store.

Usage:
    python examples/cached_reads.py
"""

import asyncio

from fetchkit import (
    BatchOperationHelper,
    CacheManager,
    DataPrefetcher,
    InMemoryDocumentStore,
    LazyLoadingController,
    SetOperation,
    configure_logging,
)


async def main() -> None:
    configure_logging("INFO")
    store = InMemoryDocumentStore()
    batches = BatchOperationHelper(store, max_batch_size=500)

    await batches.execute_batch(
        [
            SetOperation(store.doc(f"users/u{i:04d}"), {"name": f"user {i}"})
            for i in range(1234)
        ],
        operation_name="seed users",
    )

    profiles: CacheManager[dict] = CacheManager("profiles", ttl_s=30)

    async def load_profile(user_id: str) -> dict | None:
        snapshot = await store.doc(f"users/{user_id}").get()
        return snapshot.data if snapshot.exists else None

    burst = await asyncio.gather(
        *(profiles.get_or_fetch("u0001", lambda: load_profile("u0001")) for _ in range(5))
    )
    print("burst:", burst[0], profiles.get_stats())

    prefetcher = DataPrefetcher()
    prefetcher.prefetch_batch(
        {"u0002": lambda: load_profile("u0002"), "u0003": lambda: load_profile("u0003")},
        priorities={"u0003": 10},
    )
    print("prefetched:", await prefetcher.get_or_fetch("u0003", lambda: load_profile("u0003")))

    async def fetch_page(page: int, page_size: int) -> list[str]:
        docs = await store.collection("users").limit((page + 1) * page_size).get()
        return [doc.id for doc in docs[page * page_size :]]

    users = LazyLoadingController(fetch_page, page_size=20)
    await users.load_initial()
    await users.load_more()
    print("loaded:", len(users.items), "has_more:", users.has_more)


if __name__ == "__main__":
    asyncio.run(main())
