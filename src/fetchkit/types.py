"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Shared type aliases for fetch callables and JSON-like document payloads.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeAlias, TypeVar

T = TypeVar("T")

JSONValue: TypeAlias = Any
DocumentData: TypeAlias = dict[str, JSONValue]

# Zero-argument coroutine factory supplied per call site.
Fetcher: TypeAlias = Callable[[], Awaitable[T | None]]

# (page_index, page_size) -> one page of items.
PageFetcher: TypeAlias = Callable[[int, int], Awaitable[Sequence[T]]]

# Called whenever a paginated loader toggles its loading flag.
LoadingListener: TypeAlias = Callable[[], None]
