"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Incremental page-by-page loading of an ordered collection.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Generic, TypeVar

from ..metrics import FetchMetrics, NoOpFetchMetrics
from ..types import LoadingListener, PageFetcher

T = TypeVar("T")

logger = logging.getLogger("fetchkit.pagination")


def paginate_list(items: Sequence[T], page: int, page_size: int) -> list[T]:
    """Return page `page` of `items`; empty when the page is past the end."""
    if page < 0 or page_size < 1:
        raise ValueError("page must be >= 0 and page_size >= 1")
    start = page * page_size
    if start >= len(items):
        return []
    return list(items[start : start + page_size])


class LazyLoadingController(Generic[T]):
    """
    Paginated loader state for one list view.

    Pages are requested strictly in order through ``fetch_page(page,
    page_size)``. A page shorter than ``page_size`` marks the end of the
    collection. A failed fetch keeps the items already loaded, records
    `error`, and leaves the page index in place so the next `load_more`
    retries it.

    `load_initial`, `refresh` and `clear` start a new generation: a fetch
    still in flight from an earlier generation is discarded when it lands.
    """

    def __init__(
        self,
        fetch_page: PageFetcher[T],
        *,
        page_size: int = 20,
        on_loading_changed: LoadingListener | None = None,
        logger: logging.Logger = logger,
        metrics: FetchMetrics | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._fetch_page = fetch_page
        self.page_size = page_size
        self.on_loading_changed = on_loading_changed
        self._logger = logger
        self._metrics = metrics or NoOpFetchMetrics()

        self._items: list[T] = []
        self._current_page = 0
        self._has_more = True
        self._is_loading = False
        self._error: str | None = None
        self._generation = 0

    @property
    def items(self) -> tuple[T, ...]:
        return tuple(self._items)

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_empty(self) -> bool:
        return not self._items and not self._is_loading

    @property
    def current_page(self) -> int:
        return self._current_page

    async def load_initial(self) -> None:
        """Reset to the first page and load it."""
        self._reset()
        await self.load_more()

    async def load_more(self) -> None:
        """Load the next page; no-op while loading or once exhausted."""
        if self._is_loading or not self._has_more:
            return

        generation = self._generation
        page = self._current_page
        self._set_loading(True)
        self._error = None

        try:
            new_items = list(await self._fetch_page(page, self.page_size))
        except Exception as exc:
            if generation == self._generation:
                self._error = str(exc) or exc.__class__.__name__
                self._metrics.incr("page_fetch_failures")
                self._logger.warning(
                    "LazyLoadingController: page %d failed: %s", page, exc
                )
            return
        else:
            if generation != self._generation:
                self._logger.debug(
                    "LazyLoadingController: dropping stale page %d after reset", page
                )
                return
            self._items.extend(new_items)
            self._current_page = page + 1
            self._has_more = len(new_items) >= self.page_size
        finally:
            if generation == self._generation:
                self._set_loading(False)

    async def refresh(self) -> None:
        """Pull-to-refresh; same as `load_initial`."""
        await self.load_initial()

    def clear(self) -> None:
        """Reset to the empty state without fetching."""
        was_loading = self._is_loading
        self._reset()
        if was_loading:
            self._notify()

    def add_item(self, item: T) -> None:
        """Insert a locally created item at the front of the list."""
        self._items.insert(0, item)

    def remove_item(self, item: T) -> None:
        if item in self._items:
            self._items.remove(item)

    def update_item(self, old_item: T, new_item: T) -> None:
        try:
            index = self._items.index(old_item)
        except ValueError:
            return
        self._items[index] = new_item

    def _reset(self) -> None:
        self._generation += 1
        self._items.clear()
        self._current_page = 0
        self._has_more = True
        self._is_loading = False
        self._error = None

    def _set_loading(self, value: bool) -> None:
        self._is_loading = value
        self._notify()

    def _notify(self) -> None:
        if self.on_loading_changed is not None:
            self.on_loading_changed()
