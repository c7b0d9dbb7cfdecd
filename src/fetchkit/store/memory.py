"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

In-memory document store implementation.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Literal

from ..errors import DocumentNotFoundError
from .base import DocumentRef, DocumentSnapshot, split_path

WriteKind = Literal["set", "merge", "update", "delete"]


@dataclass(frozen=True, slots=True)
class InMemoryDocumentRef:
    """Reference to one document in an `InMemoryDocumentStore`."""

    store: "InMemoryDocumentStore"
    path: str

    @property
    def id(self) -> str:
        return split_path(self.path)[1]

    async def get(self) -> DocumentSnapshot:
        return self.store._snapshot(self.path)


@dataclass(frozen=True, slots=True)
class InMemoryQuery:
    """Collection query ordered by document id."""

    store: "InMemoryDocumentStore"
    collection_name: str
    limit_count: int | None = None
    after_id: str | None = None

    def limit(self, count: int) -> "InMemoryQuery":
        if count < 1:
            raise ValueError("limit must be >= 1")
        return replace(self, limit_count=count)

    def start_after(self, snapshot: DocumentSnapshot) -> "InMemoryQuery":
        return replace(self, after_id=snapshot.id)

    def doc(self, doc_id: str) -> InMemoryDocumentRef:
        return InMemoryDocumentRef(self.store, f"{self.collection_name}/{doc_id}")

    async def get(self) -> list[DocumentSnapshot]:
        rows = self.store._collections.get(self.collection_name, {})
        ids = sorted(rows)
        if self.after_id is not None:
            ids = [doc_id for doc_id in ids if doc_id > self.after_id]
        if self.limit_count is not None:
            ids = ids[: self.limit_count]
        return [
            self.store._snapshot(f"{self.collection_name}/{doc_id}") for doc_id in ids
        ]


@dataclass(slots=True)
class InMemoryWriteBatch:
    """Buffered writes applied atomically on `commit`."""

    store: "InMemoryDocumentStore"
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
        self.store._apply(self.writes)
        self.committed = True

    def _add(self, kind: WriteKind, path: str, data: dict[str, Any] | None) -> None:
        if self.committed:
            raise RuntimeError("Write batch already committed")
        split_path(path)
        self.writes.append((kind, path, copy.deepcopy(data)))


class InMemoryDocumentStore:
    """
    Process-local document store.

    Suitable for tests and offline development. Data is lost on process
    restart.
    """

    backend_id = "inmemory"

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.commit_count = 0

    def doc(self, path: str) -> InMemoryDocumentRef:
        split_path(path)
        return InMemoryDocumentRef(self, path.strip("/"))

    def collection(self, name: str) -> InMemoryQuery:
        return InMemoryQuery(self, name.strip("/"))

    def batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self)

    def _snapshot(self, path: str) -> DocumentSnapshot:
        collection, doc_id = split_path(path)
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return DocumentSnapshot.missing(path)
        return DocumentSnapshot(path=path, id=doc_id, data=copy.deepcopy(data))

    def _apply(self, writes: list[tuple[WriteKind, str, dict[str, Any] | None]]) -> None:
        """Apply all writes or none of them."""
        staged = copy.deepcopy(self._collections)
        for kind, path, data in writes:
            collection, doc_id = split_path(path)
            rows = staged.setdefault(collection, {})
            if kind == "delete":
                rows.pop(doc_id, None)
            elif kind == "set":
                rows[doc_id] = dict(data or {})
            elif kind == "merge":
                rows[doc_id] = {**rows.get(doc_id, {}), **(data or {})}
            else:
                if doc_id not in rows:
                    raise DocumentNotFoundError(path)
                rows[doc_id] = {**rows[doc_id], **(data or {})}
        self._collections = staged
        self.commit_count += 1
