"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Chunked batch writes and concurrent batch reads against a document store.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Iterable, Sequence
from typing import Any

from ..errors import BatchCommitError
from ..metrics import FetchMetrics, NoOpFetchMetrics
from ..settings import DEFAULT_MAX_BATCH_SIZE, FetchKitSettings
from ..store.base import DocumentRef, DocumentSnapshot, DocumentStore, Query
from .operations import (
    BatchOperation,
    DeleteOperation,
    SetOperation,
    UpdateOperation,
    chunked,
)
from .query import get_all_documents, get_paginated_documents

logger = logging.getLogger("fetchkit.batch")


class BatchOperationHelper:
    """
    Bounded batch executor.

    Writes are split into chunks of at most `max_batch_size` operations.
    Chunks commit sequentially in input order; each chunk is atomic on its
    own, but a failure in chunk N leaves chunks 0..N-1 committed and never
    attempts the rest. Reads carry no ordering constraint and run
    concurrently.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        logger: logging.Logger = logger,
        metrics: FetchMetrics | None = None,
    ) -> None:
        if max_batch_size < 1:
            raise ValueError("max_batch_size must be >= 1")
        self._store = store
        self.max_batch_size = max_batch_size
        self._logger = logger
        self._metrics = metrics or NoOpFetchMetrics()

    @classmethod
    def from_settings(
        cls, store: DocumentStore, settings: FetchKitSettings, **kwargs: Any
    ) -> "BatchOperationHelper":
        return cls(store, max_batch_size=settings.max_batch_size, **kwargs)

    async def execute_batch(
        self,
        operations: Iterable[BatchOperation],
        *,
        operation_name: str | None = None,
    ) -> None:
        """
        Apply `operations` in order, one write batch per chunk.

        Raises:
            BatchCommitError: A chunk failed to apply or commit. Earlier
                chunks remain committed; later chunks were not attempted.
        """
        ops = list(operations)
        if not ops:
            return

        chunks = chunked(ops, self.max_batch_size)
        label = operation_name or "batch"
        self._logger.info(
            "Batch[%s]: executing %d operations in %d chunk(s)",
            label,
            len(ops),
            len(chunks),
        )
        started = time.perf_counter()
        committed = 0

        for index, chunk in enumerate(chunks):
            try:
                batch = self._store.batch()
                for op in chunk:
                    op.apply(batch)
                await batch.commit()
            except Exception as exc:
                self._logger.error(
                    "Batch[%s]: chunk %d/%d failed after %d committed operations: %s",
                    label,
                    index + 1,
                    len(chunks),
                    committed,
                    exc,
                )
                raise BatchCommitError(
                    f"Chunk {index + 1}/{len(chunks)} of {label!r} failed: {exc}",
                    chunk_index=index,
                    chunk_count=len(chunks),
                    committed_operations=committed,
                    operation_name=operation_name,
                ) from exc

            committed += len(chunk)
            self._metrics.incr("batch_chunks_committed")
            self._metrics.incr("batch_operations_committed", len(chunk))
            self._logger.debug(
                "Batch[%s]: chunk %d/%d committed (%d ops)",
                label,
                index + 1,
                len(chunks),
                len(chunk),
            )

        self._logger.info(
            "Batch[%s]: completed in %.1fms",
            label,
            (time.perf_counter() - started) * 1000,
        )

    async def batch_read(
        self,
        refs: Sequence[DocumentRef],
        *,
        operation_name: str | None = None,
    ) -> dict[str, DocumentSnapshot]:
        """Read every ref concurrently; results are keyed by ref path."""
        if not refs:
            return {}
        self._logger.debug(
            "Batch[%s]: reading %d documents in parallel",
            operation_name or "read",
            len(refs),
        )
        snapshots = await asyncio.gather(*(ref.get() for ref in refs))
        return {ref.path: snapshot for ref, snapshot in zip(refs, snapshots)}

    async def batch_set(
        self,
        refs: Sequence[DocumentRef],
        data: dict[str, Any],
        *,
        merge: bool = False,
        operation_name: str | None = None,
    ) -> None:
        await self.execute_batch(
            [SetOperation(ref, data, merge) for ref in refs],
            operation_name=operation_name,
        )

    async def batch_update(
        self,
        refs: Sequence[DocumentRef],
        data: dict[str, Any],
        *,
        operation_name: str | None = None,
    ) -> None:
        """Apply the same field update to every ref."""
        await self.execute_batch(
            [UpdateOperation(ref, data) for ref in refs],
            operation_name=operation_name,
        )

    async def batch_delete(
        self,
        refs: Sequence[DocumentRef],
        *,
        operation_name: str | None = None,
    ) -> None:
        await self.execute_batch(
            [DeleteOperation(ref) for ref in refs],
            operation_name=operation_name,
        )

    async def get_all_documents(
        self, query: Query, *, limit: int | None = None
    ) -> list[DocumentSnapshot]:
        return await get_all_documents(query, limit=limit)

    def get_paginated_documents(
        self, query: Query, page_size: int
    ) -> AsyncIterator[list[DocumentSnapshot]]:
        return get_paginated_documents(query, page_size)
