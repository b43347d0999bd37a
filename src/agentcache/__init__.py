"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Expiring key/value caches with interchangeable storage backends.

Every backend implements the ``Cache`` contract (``get``, ``put``,
``remove``, ``quit``), so callers can swap storage without code changes.

Quick start::

    from agentcache import CouchDBCache, CouchDBSettings

    cache = CouchDBCache(CouchDBSettings(host="localhost", expire_after_s=600))
    await cache.put("foo", {"foo": "bar"})
    assert await cache.get("foo") == {"foo": "bar"}
    await cache.remove("foo")
    await cache.quit()
"""

from .couchdb import CouchDBCache, CouchDBConnector
from .errors import (
    AuthenticationError,
    CacheError,
    CollectionExistsError,
    ConnectionClosedError,
    EntryExpiredError,
    EntryNotFoundError,
    RevisionConflictError,
    StoreConnectionError,
    StoreError,
)
from .factory import create_cache_from_env
from .lazy import AsyncLazy
from .memory import InMemoryCache
from .settings import CouchDBSettings
from .types import Cache, CacheEntry, JSONValue

__all__ = [
    "Cache",
    "CacheEntry",
    "JSONValue",
    "AsyncLazy",
    "CouchDBCache",
    "CouchDBConnector",
    "CouchDBSettings",
    "InMemoryCache",
    "create_cache_from_env",
    "CacheError",
    "AuthenticationError",
    "StoreConnectionError",
    "EntryNotFoundError",
    "EntryExpiredError",
    "StoreError",
    "CollectionExistsError",
    "RevisionConflictError",
    "ConnectionClosedError",
]


# Lazy import for Redis cache
def __getattr__(name: str):
    """Lazily expose optional cache backends that require extra dependencies."""
    if name == "RedisCache":
        from .redis import RedisCache

        return RedisCache
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
