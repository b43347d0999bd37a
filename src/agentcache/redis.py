"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Redis-backed cache backend for multi-process deployments.

Requires ``redis.asyncio`` (``pip install agentcache[redis]``).
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from .cleanup import schedule_removal
from .errors import (
    ConnectionClosedError,
    EntryExpiredError,
    EntryNotFoundError,
    StoreError,
)
from .settings import DEFAULT_EXPIRE_AFTER_S
from .types import Cache, CacheEntry, JSONValue
from .utils import now_ms

logger = logging.getLogger("agentcache.redis")


class RedisCache(Cache):
    """
    Expiring cache storing one JSON envelope per Redis string key.

    Expiry is enforced on read, like the other backends, so a stale entry
    reports ``EntryExpiredError`` rather than silently disappearing.

    Args:
        redis: A ``redis.asyncio.Redis`` client instance.
        prefix: Key prefix for namespacing.
        expire_after_s: Entry lifetime in seconds; ``0`` disables expiry.
        owns_client: Close ``redis`` on ``quit``. Set when the cache built
            the client itself; an injected client is left to its owner.
    """

    backend_id = "redis"

    def __init__(
        self,
        redis: Any,
        *,
        prefix: str = "agentcache",
        expire_after_s: float = DEFAULT_EXPIRE_AFTER_S,
        owns_client: bool = False,
    ) -> None:
        if expire_after_s < 0:
            raise ValueError("expire_after_s must be >= 0")
        self._redis = redis
        self._prefix = prefix
        self._owns_client = owns_client
        self.expire_after_s = expire_after_s
        self._closed = False
        self._cleanup_tasks: set[asyncio.Task[None]] = set()

    def _entry_key(self, key: str) -> str:
        return f"{self._prefix}:entry:{key}"

    def _now_ms(self) -> int:
        return now_ms()

    def _client(self) -> Any:
        if self._closed:
            raise ConnectionClosedError()
        return self._redis

    async def get(self, key: str) -> JSONValue:
        blob = await self._client().get(self._entry_key(key))
        if blob is None:
            raise EntryNotFoundError(key)
        try:
            row = json.loads(blob)
        except ValueError as exc:
            raise StoreError(f"Corrupt cache entry '{key}'") from exc
        if not isinstance(row, dict):
            raise StoreError(f"Corrupt cache entry '{key}'")
        entry = CacheEntry.from_document(row)
        if entry.is_expired(now_ms=self._now_ms(), expire_after_s=self.expire_after_s):
            schedule_removal(self._cleanup_tasks, key, self.remove, logger=logger)
            raise EntryExpiredError(key)
        return entry.data

    async def put(self, key: str, value: JSONValue) -> None:
        entry = CacheEntry(data=value, created_at_ms=self._now_ms())
        await self._client().set(
            self._entry_key(key), json.dumps(entry.to_document(), ensure_ascii=True)
        )

    async def remove(self, key: str) -> None:
        removed = await self._client().delete(self._entry_key(key))
        if not removed:
            raise EntryNotFoundError(key)

    async def quit(self) -> None:
        """Refuse further operations, closing the client when this cache owns it."""
        if self._closed:
            return
        self._closed = True
        if self._owns_client:
            await self._redis.aclose()

    async def __aenter__(self) -> RedisCache:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.quit()
