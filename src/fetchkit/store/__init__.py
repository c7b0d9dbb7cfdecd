"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Document store protocols and backends.

Quick start::

    from fetchkit.store import InMemoryDocumentStore

    store = InMemoryDocumentStore()
    batch = store.batch()
    batch.set(store.doc("users/u1"), {"name": "Ada"})
    await batch.commit()
"""

from .base import (
    DocumentRef,
    DocumentSnapshot,
    DocumentStore,
    Query,
    WriteBatch,
    split_path,
)
from .factory import create_document_store_from_env
from .memory import InMemoryDocumentRef, InMemoryDocumentStore, InMemoryQuery, InMemoryWriteBatch

__all__ = [
    "DocumentRef",
    "DocumentSnapshot",
    "DocumentStore",
    "Query",
    "WriteBatch",
    "split_path",
    "create_document_store_from_env",
    "InMemoryDocumentRef",
    "InMemoryDocumentStore",
    "InMemoryQuery",
    "InMemoryWriteBatch",
]


# Lazy import for Redis store
def __getattr__(name: str):
    """Lazily expose optional store backends that require extra dependencies."""
    if name == "RedisDocumentStore":
        from .redis import RedisDocumentStore

        return RedisDocumentStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
