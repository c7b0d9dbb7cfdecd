"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Bounded batch writes, concurrent batch reads and cursor pagination.
"""

from .executor import BatchOperationHelper
from .operations import (
    BatchOperation,
    DeleteOperation,
    SetOperation,
    UpdateOperation,
    chunked,
)
from .query import get_all_documents, get_paginated_documents

__all__ = [
    "BatchOperationHelper",
    "BatchOperation",
    "SetOperation",
    "UpdateOperation",
    "DeleteOperation",
    "chunked",
    "get_all_documents",
    "get_paginated_documents",
]
