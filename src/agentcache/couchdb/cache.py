"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

CouchDB-backed expiring cache.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..cleanup import schedule_removal
from ..errors import (
    CacheError,
    CollectionExistsError,
    EntryExpiredError,
    EntryNotFoundError,
)
from ..lazy import AsyncLazy
from ..settings import CouchDBSettings
from ..types import Cache, CacheEntry, JSONValue
from ..utils import now_ms
from .client import (
    CouchDBConnector,
    DocumentCollection,
    DocumentStore,
    DocumentStoreConnector,
)

logger = logging.getLogger("agentcache.couchdb")


class CouchDBCache(Cache):
    """
    Expiring key/value cache stored as documents in one CouchDB database.

    Nothing touches the network until the first operation. That operation
    authenticates (when credentials are configured), opens the connection,
    and creates the database if needed; the results are memoized, so every
    later or concurrent operation reuses them. A failed connection stays
    failed for this instance; build a new cache to retry.

    Entries are stored as ``{"data": value, "createdAt": iso8601}``.
    Expiry is checked on read: a stale entry raises ``EntryExpiredError``
    and is removed in the background.

    Example::

        cache = CouchDBCache(
            CouchDBSettings(host="db.example.com", username="admin",
                            password="secret123", expire_after_s=600)
        )
        await cache.put("foo", {"bar": "baz"})
        value = await cache.get("foo")
        await cache.quit()
    """

    backend_id = "couchdb"

    def __init__(
        self,
        settings: CouchDBSettings | None = None,
        *,
        connector: DocumentStoreConnector | None = None,
    ) -> None:
        self._settings = settings or CouchDBSettings()
        self._connector: DocumentStoreConnector = connector or CouchDBConnector(
            timeout_s=self._settings.timeout_s
        )
        self._connection: AsyncLazy[DocumentStore] = AsyncLazy(
            self._connect, name="connection"
        )
        self._db: AsyncLazy[DocumentCollection] = AsyncLazy(
            self._ensure_collection, name="db"
        )
        self._cleanup_tasks: set[asyncio.Task[None]] = set()

    @property
    def settings(self) -> CouchDBSettings:
        return self._settings

    @property
    def expire_after_s(self) -> float:
        return self._settings.expire_after_s

    def _now_ms(self) -> int:
        """Return the clock used to stamp and expire entries."""
        return now_ms()

    async def _authenticate(self) -> str | None:
        settings = self._settings
        if not settings.has_auth:
            return None
        return await self._connector.authenticate(
            settings.resolved_url(), settings.username or "", settings.password or ""
        )

    async def _connect(self) -> DocumentStore:
        credential = await self._authenticate()
        url = self._settings.resolved_url()
        logger.debug("Connecting to CouchDB at %s", url)
        return await self._connector.open_connection(url, credential)

    async def _ensure_collection(self) -> DocumentCollection:
        """Create the cache database if missing, then bind to it."""
        connection = await self._connection.get()
        name = self._settings.db
        try:
            await connection.create_collection(name)
        except CollectionExistsError:
            logger.debug("CouchDB database '%s' already exists", name)
        except CacheError as exc:
            logger.warning("Could not create CouchDB database '%s': %s", name, exc)
        else:
            logger.debug("Created CouchDB database '%s'", name)
        return connection.use_collection(name)

    async def _load(self, key: str) -> tuple[DocumentCollection, dict[str, Any]]:
        """Fetch the raw stored document, without any expiry check."""
        db = await self._db.get()
        document = await db.get_document(key)
        if document is None:
            raise EntryNotFoundError(key)
        return db, document

    async def get(self, key: str) -> JSONValue:
        """
        Return the value stored under ``key``.

        Raises:
            EntryNotFoundError: Nothing is stored under ``key``.
            EntryExpiredError: The entry outlived ``expire_after_s``. Its
                removal is scheduled in the background and its outcome is
                not reported here.
        """
        _, document = await self._load(key)
        entry = CacheEntry.from_document(document)
        if entry.is_expired(now_ms=self._now_ms(), expire_after_s=self.expire_after_s):
            schedule_removal(self._cleanup_tasks, key, self.remove, logger=logger)
            raise EntryExpiredError(key)
        return entry.data

    async def put(self, key: str, value: JSONValue) -> None:
        """Store ``value`` under ``key``, overwriting any existing entry."""
        db = await self._db.get()
        entry = CacheEntry(data=value, created_at_ms=self._now_ms())
        await db.put_document(key, entry.to_document())

    async def remove(self, key: str) -> None:
        """
        Delete the entry under ``key``, expired or not.

        Raises:
            EntryNotFoundError: Nothing is stored under ``key``.
        """
        db, document = await self._load(key)
        await db.delete_document(key, str(document.get("_rev", "")))

    async def quit(self) -> None:
        """
        Shut the cache down; every later operation raises ``ConnectionClosedError``.

        Always succeeds. Calling it again is a no-op.
        """
        self._db.close()
        connection_task = self._connection.close()
        if connection_task is None or not connection_task.done():
            return
        if connection_task.cancelled() or connection_task.exception() is not None:
            return
        try:
            await connection_task.result().aclose()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Error while closing CouchDB connection: %s", exc)

    async def __aenter__(self) -> CouchDBCache:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.quit()
