"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Runtime settings and explicit config loading.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_MAX_BATCH_SIZE = 500


@dataclass(frozen=True, slots=True)
class FetchKitSettings:
    """Explicit settings shared by the cache, prefetch, pagination and batch layers."""

    cache_ttl_s: float = 30.0
    prefetch_timeout_s: float = 30.0
    fetch_timeout_s: float = 10.0
    page_size: int = 20
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    log_level: str = "WARNING"

    store_backend: str = "inmemory"
    redis_url: str | None = None
    redis_prefix: str = "fetchkit:docs"

    def __post_init__(self) -> None:
        if self.cache_ttl_s <= 0:
            raise ValueError("cache_ttl_s must be > 0")
        if self.prefetch_timeout_s <= 0:
            raise ValueError("prefetch_timeout_s must be > 0")
        if self.fetch_timeout_s <= 0:
            raise ValueError("fetch_timeout_s must be > 0")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.max_batch_size < 1:
            raise ValueError("max_batch_size must be >= 1")

    @staticmethod
    def from_env() -> "FetchKitSettings":
        """Load settings from `FETCHKIT_*` environment variables."""
        return FetchKitSettings(
            cache_ttl_s=float(os.getenv("FETCHKIT_CACHE_TTL_S", "30")),
            prefetch_timeout_s=float(os.getenv("FETCHKIT_PREFETCH_TIMEOUT_S", "30")),
            fetch_timeout_s=float(os.getenv("FETCHKIT_FETCH_TIMEOUT_S", "10")),
            page_size=int(os.getenv("FETCHKIT_PAGE_SIZE", "20")),
            max_batch_size=int(
                os.getenv("FETCHKIT_MAX_BATCH_SIZE", str(DEFAULT_MAX_BATCH_SIZE))
            ),
            log_level=os.getenv("FETCHKIT_LOG_LEVEL", "WARNING").strip().upper(),
            store_backend=os.getenv("FETCHKIT_STORE_BACKEND", "inmemory").strip().lower(),
            redis_url=os.getenv("FETCHKIT_REDIS_URL") or None,
            redis_prefix=os.getenv("FETCHKIT_REDIS_PREFIX", "fetchkit:docs"),
        )


def configure_logging(level: str | int = "WARNING") -> logging.Logger:
    """
    Apply a verbosity level to the ``fetchkit`` logger hierarchy.

    Handlers are left to the application; only the level is set.
    """
    root = logging.getLogger("fetchkit")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    root.setLevel(level)
    return root
