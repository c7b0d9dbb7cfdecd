"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Document store protocols consumed by the batch executor and query paginator.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


def split_path(path: str) -> tuple[str, str]:
    """
    Split ``collection/doc_id`` into its parts.

    Collections may be nested (``users/u1/notifications/n1``); the document id
    is always the last segment.
    """
    cleaned = path.strip("/")
    collection, sep, doc_id = cleaned.rpartition("/")
    if not sep or not collection or not doc_id:
        raise ValueError(f"Document path must look like 'collection/id': {path!r}")
    return collection, doc_id


class DocumentSnapshot(BaseModel):
    """Immutable read result for one document."""

    model_config = ConfigDict(frozen=True)

    path: str
    id: str
    data: dict[str, Any] = Field(default_factory=dict)
    exists: bool = True

    @classmethod
    def missing(cls, path: str) -> "DocumentSnapshot":
        _, doc_id = split_path(path)
        return cls(path=path, id=doc_id, data={}, exists=False)


@runtime_checkable
class DocumentRef(Protocol):
    """Reference identifying one document by path."""

    @property
    def path(self) -> str: ...

    @property
    def id(self) -> str: ...

    async def get(self) -> DocumentSnapshot: ...


class WriteBatch(Protocol):
    """Transaction handle buffering writes until `commit`."""

    def set(self, ref: DocumentRef, data: dict[str, Any], *, merge: bool = False) -> None: ...

    def update(self, ref: DocumentRef, data: dict[str, Any]) -> None: ...

    def delete(self, ref: DocumentRef) -> None: ...

    async def commit(self) -> None: ...


class Query(Protocol):
    """Ordered, cursor-pageable view over one collection."""

    def limit(self, count: int) -> "Query": ...

    def start_after(self, snapshot: DocumentSnapshot) -> "Query": ...

    async def get(self) -> list[DocumentSnapshot]: ...


class DocumentStore(Protocol):
    """Backing store entry points used by fetchkit."""

    backend_id: str

    def doc(self, path: str) -> DocumentRef: ...

    def collection(self, name: str) -> Query: ...

    def batch(self) -> WriteBatch: ...
