"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for selecting cache backends from environment variables.
"""

from __future__ import annotations

import os
from typing import Any

from .couchdb import CouchDBCache, DocumentStoreConnector
from .memory import InMemoryCache
from .settings import DEFAULT_EXPIRE_AFTER_S, CouchDBSettings
from .types import Cache


def _env(*names: str, default: str | None = None) -> str | None:
    """First non-blank value among `names`, else `default`."""
    values = (os.getenv(name, "").strip() for name in names)
    return next((value for value in values if value), default)


def _expire_after_s() -> float:
    raw = _env("AGENTCACHE_EXPIRE_AFTER_S", default=str(DEFAULT_EXPIRE_AFTER_S))
    return float(raw or DEFAULT_EXPIRE_AFTER_S)


def create_cache_from_env(
    *,
    connector: DocumentStoreConnector | None = None,
    redis_client: Any | None = None,
) -> Cache:
    """
    Create a cache backend from `AGENTCACHE_*` environment variables.

    Backends:
    - `inmemory` (default)
    - `couchdb`
    - `redis`

    CouchDB settings come from `CouchDBSettings.from_env()`; `connector`
    overrides the HTTP connector. Redis uses the provided `redis_client`
    when supplied, otherwise builds one from `AGENTCACHE_REDIS_URL`.
    """
    backend = os.getenv("AGENTCACHE_BACKEND", "inmemory").strip().lower()

    if backend in ("mem", "memory", "inmemory", "in_memory"):
        return InMemoryCache(expire_after_s=_expire_after_s())

    if backend in ("couch", "couchdb"):
        return CouchDBCache(CouchDBSettings.from_env(), connector=connector)

    if backend in ("redis",):
        from .redis import RedisCache

        prefix = _env("AGENTCACHE_REDIS_PREFIX", default="agentcache")

        client = redis_client
        owns_client = client is None
        if client is None:
            try:
                import redis.asyncio as redis
            except ModuleNotFoundError as exc:  # pragma: no cover
                raise RuntimeError(
                    "Redis cache backend requires `redis` to be installed."
                ) from exc

            url = _env("AGENTCACHE_REDIS_URL", default="redis://localhost:6379/0")
            client = redis.Redis.from_url(url)

        return RedisCache(
            client,
            prefix=prefix,
            expire_after_s=_expire_after_s(),
            owns_client=owns_client,
        )

    raise ValueError(f"Unknown AGENTCACHE_BACKEND: {backend}")
