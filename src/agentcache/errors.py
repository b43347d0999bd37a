"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error types raised by cache backends.
"""

from __future__ import annotations


class CacheError(RuntimeError):
    """Base class for all cache backend failures."""


class AuthenticationError(CacheError):
    """Raised when the store rejects credentials or returns no session."""


class StoreConnectionError(CacheError):
    """Raised when the store cannot be reached."""


class EntryNotFoundError(CacheError):
    """Raised when no entry is stored under a key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"entry {key} not found in cache")
        self.key = key


class EntryExpiredError(CacheError):
    """Raised by ``get`` when the stored entry is older than the expiry window."""

    def __init__(self, key: str) -> None:
        super().__init__(f"entry {key} expired")
        self.key = key


class StoreError(CacheError):
    """Generic backend failure reported by the store."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CollectionExistsError(StoreError):
    """Raised when creating a collection that already exists."""


class RevisionConflictError(StoreError):
    """Raised when a write or delete races with another writer."""


class ConnectionClosedError(CacheError):
    """Raised by every operation issued after ``quit``."""

    def __init__(self, message: str = "connection closed") -> None:
        super().__init__(message)
