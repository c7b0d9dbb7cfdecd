"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Client-side data-access layer for remote document stores.

Provides a read-through TTL cache with request coalescing, a priority-ordered
prefetch scheduler, a paginated list loader, and a bounded batch executor.

Quick start::

    from fetchkit import BatchOperationHelper, CacheManager, InMemoryDocumentStore

    store = InMemoryDocumentStore()
    profiles: CacheManager[dict] = CacheManager("profiles", ttl_s=30)

    async def load(user_id: str) -> dict | None:
        snapshot = await store.doc(f"users/{user_id}").get()
        return snapshot.data if snapshot.exists else None

    profile = await profiles.get_or_fetch("u1", lambda: load("u1"))
"""

from .batch import (
    BatchOperation,
    BatchOperationHelper,
    DeleteOperation,
    SetOperation,
    UpdateOperation,
    get_all_documents,
    get_paginated_documents,
)
from .cache import CacheEntry, CacheManager, CacheStats, RequestCoalescer
from .errors import (
    BatchCommitError,
    DocumentNotFoundError,
    DocumentStoreError,
    FetchKitError,
)
from .metrics import FetchMetrics, NoOpFetchMetrics, PrometheusFetchMetrics
from .pagination import LazyLoadingController, paginate_list
from .prefetch import (
    DataPrefetcher,
    PrefetchStats,
    get_prefetcher,
    reset_prefetcher,
)
from .settings import FetchKitSettings, configure_logging
from .store import (
    DocumentSnapshot,
    DocumentStore,
    InMemoryDocumentStore,
    create_document_store_from_env,
)

__all__ = [
    "CacheEntry",
    "CacheManager",
    "CacheStats",
    "RequestCoalescer",
    "DataPrefetcher",
    "PrefetchStats",
    "get_prefetcher",
    "reset_prefetcher",
    "LazyLoadingController",
    "paginate_list",
    "BatchOperation",
    "BatchOperationHelper",
    "SetOperation",
    "UpdateOperation",
    "DeleteOperation",
    "get_all_documents",
    "get_paginated_documents",
    "DocumentSnapshot",
    "DocumentStore",
    "InMemoryDocumentStore",
    "create_document_store_from_env",
    "FetchKitError",
    "BatchCommitError",
    "DocumentStoreError",
    "DocumentNotFoundError",
    "FetchMetrics",
    "NoOpFetchMetrics",
    "PrometheusFetchMetrics",
    "FetchKitSettings",
    "configure_logging",
]
