"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error hierarchy for fetchkit.

Transient fetch failures and prefetch timeouts never surface as exceptions;
they are logged and resolve to ``None``. Only hard failures that callers must
act on are modelled here.
"""

from __future__ import annotations


class FetchKitError(RuntimeError):
    """Base fetchkit error."""


class BatchCommitError(FetchKitError):
    """
    Raised when one chunk of a batched write fails to apply or commit.

    Chunks before ``chunk_index`` stay committed; later chunks were never
    attempted.

    Attributes:
        chunk_index: Zero-based index of the failing chunk.
        chunk_count: Total number of chunks in the batch.
        committed_operations: Operations already committed by earlier chunks.
        operation_name: Optional caller-supplied label for the batch.
    """

    def __init__(
        self,
        message: str,
        *,
        chunk_index: int,
        chunk_count: int,
        committed_operations: int,
        operation_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.chunk_index = chunk_index
        self.chunk_count = chunk_count
        self.committed_operations = committed_operations
        self.operation_name = operation_name


class DocumentStoreError(FetchKitError):
    """Raised when a document store backend cannot be resolved or configured."""


class DocumentNotFoundError(DocumentStoreError):
    """Raised when an update targets a document that does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No document to update: {path}")
        self.path = path
