"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Process-local cache backend.
"""

from __future__ import annotations

import copy
import logging

from .errors import ConnectionClosedError, EntryExpiredError, EntryNotFoundError
from .settings import DEFAULT_EXPIRE_AFTER_S
from .types import Cache, CacheEntry, JSONValue
from .utils import now_ms

logger = logging.getLogger("agentcache.memory")


class InMemoryCache(Cache):
    """
    Dict-backed cache suitable for development and tests.

    Values are deep-copied on write and read so callers never share state
    with the cache. Entries are lost on process restart.
    """

    backend_id = "inmemory"

    def __init__(self, *, expire_after_s: float = DEFAULT_EXPIRE_AFTER_S) -> None:
        if expire_after_s < 0:
            raise ValueError("expire_after_s must be >= 0")
        self.expire_after_s = expire_after_s
        self._rows: dict[str, CacheEntry] = {}
        self._closed = False

    def _now_ms(self) -> int:
        return now_ms()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConnectionClosedError()

    async def get(self, key: str) -> JSONValue:
        self._ensure_open()
        row = self._rows.get(key)
        if row is None:
            raise EntryNotFoundError(key)
        if row.is_expired(now_ms=self._now_ms(), expire_after_s=self.expire_after_s):
            self._rows.pop(key, None)
            logger.debug("Removed expired entry '%s'", key)
            raise EntryExpiredError(key)
        return copy.deepcopy(row.data)

    async def put(self, key: str, value: JSONValue) -> None:
        self._ensure_open()
        self._rows[key] = CacheEntry(
            data=copy.deepcopy(value), created_at_ms=self._now_ms()
        )

    async def remove(self, key: str) -> None:
        self._ensure_open()
        if self._rows.pop(key, None) is None:
            raise EntryNotFoundError(key)

    async def quit(self) -> None:
        """Drop all entries and refuse further operations."""
        self._closed = True
        self._rows.clear()

    @property
    def size(self) -> int:
        """Number of stored entries, expired ones included."""
        return len(self._rows)

    async def __aenter__(self) -> InMemoryCache:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.quit()
