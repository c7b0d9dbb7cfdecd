"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for selecting document store backends from environment variables.
"""

from __future__ import annotations

import os
from typing import Any

from ..errors import DocumentStoreError
from ..settings import FetchKitSettings
from .base import DocumentStore
from .memory import InMemoryDocumentStore


def _env_first(*names: str, default: str | None = None) -> str | None:
    """
    Return the first non-empty environment variable in `names`.

    Args:
        *names: Environment variable names to check in order.
        default: Value returned if no non-empty variable is found.
    """
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def _redis_url_from_env() -> str:
    """Build a Redis URL from host/port/db/password variables."""
    host = _env_first("FETCHKIT_REDIS_HOST", "REDIS_HOST", default="localhost") or "localhost"
    port = _env_first("FETCHKIT_REDIS_PORT", "REDIS_PORT", default="6379") or "6379"
    db = _env_first("FETCHKIT_REDIS_DB", "REDIS_DB", default="0") or "0"
    password = _env_first("FETCHKIT_REDIS_PASSWORD", "REDIS_PASSWORD", default="") or ""
    if password:
        return f"redis://:{password}@{host}:{port}/{db}"
    return f"redis://{host}:{port}/{db}"


def create_document_store_from_env(
    *,
    settings: FetchKitSettings | None = None,
    redis_client: Any | None = None,
) -> DocumentStore:
    """
    Create a document store backend from `FETCHKIT_*` settings.

    Backends:
    - `inmemory` (default)
    - `redis`

    Redis resolution:
    - Uses the provided `redis_client` when supplied.
    - Otherwise builds a client from `FETCHKIT_REDIS_URL`.
    - If no URL is set, falls back to host/port/db/password variables.
    """
    settings = settings or FetchKitSettings.from_env()
    backend = settings.store_backend.strip().lower()

    if backend in ("mem", "memory", "inmemory", "in_memory"):
        return InMemoryDocumentStore()

    if backend == "redis":
        from .redis import RedisDocumentStore

        client = redis_client
        if client is None:
            try:
                import redis.asyncio as redis
            except ModuleNotFoundError as exc:  # pragma: no cover
                raise DocumentStoreError(
                    "Redis document store requires `redis` to be installed."
                ) from exc
            client = redis.Redis.from_url(settings.redis_url or _redis_url_from_env())

        return RedisDocumentStore(client, prefix=settings.redis_prefix)

    raise DocumentStoreError(f"Unknown FETCHKIT_STORE_BACKEND: {backend}")
