"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Query helpers: single-shot fetch and cursor-based pagination.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator

from ..store.base import DocumentSnapshot, Query

logger = logging.getLogger("fetchkit.batch")


async def get_all_documents(
    query: Query,
    *,
    limit: int | None = None,
) -> list[DocumentSnapshot]:
    """Run `query` once, optionally capped at `limit` documents."""
    final_query = query.limit(limit) if limit is not None else query
    started = time.perf_counter()
    docs = await final_query.get()
    logger.debug(
        "QueryBatch: retrieved %d documents in %.1fms",
        len(docs),
        (time.perf_counter() - started) * 1000,
    )
    return docs


async def get_paginated_documents(
    query: Query,
    page_size: int,
) -> AsyncIterator[list[DocumentSnapshot]]:
    """
    Yield successive pages of `query`, each starting after the previous page's last document.

    Cursor-based rather than offset-based, so inserts before the cursor do
    not shift or duplicate already-seen documents. Stops after an empty or
    short page. The generator is single-use; call again to restart from the
    beginning.
    """
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    last_doc: DocumentSnapshot | None = None
    page_count = 0
    while True:
        page_query = query.limit(page_size)
        if last_doc is not None:
            page_query = page_query.start_after(last_doc)

        docs = await page_query.get()
        if not docs:
            return

        page_count += 1
        logger.debug("QueryBatch: page %d (%d docs)", page_count, len(docs))
        yield docs

        if len(docs) < page_size:
            return
        last_doc = docs[-1]
