"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Redis-backed document store.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any

from ..errors import DocumentNotFoundError
from .base import DocumentRef, DocumentSnapshot, split_path
from .memory import WriteKind

logger = logging.getLogger("fetchkit.store.redis")


def _decode(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return raw


def _load_document(blob: str | bytes, path: str) -> dict[str, Any] | None:
    """Parse a stored document; undecodable blobs are logged and read as missing."""
    try:
        return json.loads(_decode(blob))
    except ValueError:
        logger.warning("Discarding undecodable document at %s", path)
        return None


@dataclass(frozen=True, slots=True)
class RedisDocumentRef:
    """Reference to one document in a `RedisDocumentStore`."""

    store: "RedisDocumentStore"
    path: str

    @property
    def id(self) -> str:
        return split_path(self.path)[1]

    async def get(self) -> DocumentSnapshot:
        data = await self.store._read(self.path)
        if data is None:
            return DocumentSnapshot.missing(self.path)
        return DocumentSnapshot(path=self.path, id=self.id, data=data)


@dataclass(frozen=True, slots=True)
class RedisQuery:
    """Collection query ordered by document id."""

    store: "RedisDocumentStore"
    collection_name: str
    limit_count: int | None = None
    after_id: str | None = None

    def limit(self, count: int) -> "RedisQuery":
        if count < 1:
            raise ValueError("limit must be >= 1")
        return replace(self, limit_count=count)

    def start_after(self, snapshot: DocumentSnapshot) -> "RedisQuery":
        return replace(self, after_id=snapshot.id)

    def doc(self, doc_id: str) -> RedisDocumentRef:
        return RedisDocumentRef(self.store, f"{self.collection_name}/{doc_id}")

    async def get(self) -> list[DocumentSnapshot]:
        key = self.store._collection_key(self.collection_name)
        ids = sorted(_decode(raw) for raw in await self.store._redis.hkeys(key))
        if self.after_id is not None:
            ids = [doc_id for doc_id in ids if doc_id > self.after_id]
        limit = self.limit_count if self.limit_count is not None else len(ids)

        # Skipped documents are backfilled from later ids so a page stays full.
        out: list[DocumentSnapshot] = []
        start = 0
        while len(out) < limit and start < len(ids):
            window = ids[start : start + limit - len(out)]
            start += len(window)
            blobs = await self.store._redis.hmget(key, window)
            for doc_id, blob in zip(window, blobs):
                # Deleted between HKEYS and HMGET.
                if blob is None:
                    continue
                path = f"{self.collection_name}/{doc_id}"
                data = _load_document(blob, path)
                if data is None:
                    continue
                out.append(DocumentSnapshot(path=path, id=doc_id, data=data))
        return out


@dataclass(slots=True)
class RedisWriteBatch:
    """
    Buffered writes committed through one ``MULTI/EXEC`` pipeline.

    Merge and update writes read current documents before the pipeline runs;
    concurrent writers from other processes are last-writer-wins.
    """

    store: "RedisDocumentStore"
    writes: list[tuple[WriteKind, str, dict[str, Any] | None]] = field(
        default_factory=list
    )
    committed: bool = False

    def set(self, ref: DocumentRef, data: dict[str, Any], *, merge: bool = False) -> None:
        self._add("merge" if merge else "set", ref.path, data)

    def update(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        self._add("update", ref.path, data)

    def delete(self, ref: DocumentRef) -> None:
        self._add("delete", ref.path, None)

    def __len__(self) -> int:
        return len(self.writes)

    async def commit(self) -> None:
        if self.committed:
            raise RuntimeError("Write batch already committed")

        staged: dict[str, dict[str, Any] | None] = {}
        for kind, path, data in self.writes:
            if kind == "delete":
                staged[path] = None
            elif kind == "set":
                staged[path] = dict(data or {})
            else:
                current = staged[path] if path in staged else await self.store._read(path)
                if current is None and kind == "update":
                    raise DocumentNotFoundError(path)
                staged[path] = {**(current or {}), **(data or {})}

        pipe = self.store._redis.pipeline(transaction=True)
        for path, value in staged.items():
            collection, doc_id = split_path(path)
            key = self.store._collection_key(collection)
            if value is None:
                pipe.hdel(key, doc_id)
            else:
                pipe.hset(key, doc_id, json.dumps(value, ensure_ascii=True, default=str))
        await pipe.execute()
        self.committed = True
        logger.debug("Committed %d writes to %d documents", len(self.writes), len(staged))

    def _add(self, kind: WriteKind, path: str, data: dict[str, Any] | None) -> None:
        if self.committed:
            raise RuntimeError("Write batch already committed")
        split_path(path)
        self.writes.append((kind, path, copy.deepcopy(data)))


class RedisDocumentStore:
    """
    Document store using one Redis hash per collection.

    Requires ``redis.asyncio`` (``pip install redis``).

    Args:
        redis: An ``redis.asyncio.Redis`` client instance.
        prefix: Key prefix for namespacing.
    """

    backend_id = "redis"

    def __init__(self, redis: Any, *, prefix: str = "fetchkit:docs") -> None:
        self._redis = redis
        self._prefix = prefix

    def doc(self, path: str) -> RedisDocumentRef:
        split_path(path)
        return RedisDocumentRef(self, path.strip("/"))

    def collection(self, name: str) -> RedisQuery:
        return RedisQuery(self, name.strip("/"))

    def batch(self) -> RedisWriteBatch:
        return RedisWriteBatch(self)

    def _collection_key(self, collection: str) -> str:
        """Redis hash key storing one collection's documents."""
        return f"{self._prefix}:{collection}"

    async def _read(self, path: str) -> dict[str, Any] | None:
        collection, doc_id = split_path(path)
        blob = await self._redis.hget(self._collection_key(collection), doc_id)
        if blob is None:
            return None
        return _load_document(blob, path)
