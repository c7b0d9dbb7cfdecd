"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Write operations applied to a store's write batch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from ..store.base import DocumentRef, WriteBatch
from ..types import DocumentData

T = TypeVar("T")


class BatchOperation(ABC):
    """One write applied against a store transaction handle."""

    __slots__ = ()

    @property
    @abstractmethod
    def path(self) -> str:
        """Path of the document this operation targets."""

    @abstractmethod
    def apply(self, batch: WriteBatch) -> None:
        """Queue this operation on `batch`."""


@dataclass(frozen=True, slots=True)
class SetOperation(BatchOperation):
    """Create or overwrite a document; `merge` keeps fields not in `data`."""

    ref: DocumentRef
    data: DocumentData = field(default_factory=dict)
    merge: bool = False

    @property
    def path(self) -> str:
        return self.ref.path

    def apply(self, batch: WriteBatch) -> None:
        batch.set(self.ref, self.data, merge=self.merge)


@dataclass(frozen=True, slots=True)
class UpdateOperation(BatchOperation):
    """Update fields of an existing document."""

    ref: DocumentRef
    data: DocumentData = field(default_factory=dict)

    @property
    def path(self) -> str:
        return self.ref.path

    def apply(self, batch: WriteBatch) -> None:
        batch.update(self.ref, self.data)


@dataclass(frozen=True, slots=True)
class DeleteOperation(BatchOperation):
    """Delete a document."""

    ref: DocumentRef

    @property
    def path(self) -> str:
        return self.ref.path

    def apply(self, batch: WriteBatch) -> None:
        batch.delete(self.ref)


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split `items` into consecutive chunks of at most `size`, preserving order."""
    if size < 1:
        raise ValueError("size must be >= 1")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]
