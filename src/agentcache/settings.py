"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

CouchDB cache settings and environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_DB_NAME = "openamagent"
DEFAULT_EXPIRE_AFTER_S = 60.0


@dataclass(frozen=True, slots=True)
class CouchDBSettings:
    """
    Connection and expiry settings for ``CouchDBCache``.

    Args:
        url: Base URL of the CouchDB server. Takes precedence over
            ``protocol``/``host``/``port``.
        protocol: URL scheme used when ``url`` is not set.
        host: Server host used when ``url`` is not set.
        port: Server port used when ``url`` is not set.
        db: Database (collection) holding the cache documents.
        username: Optional user for cookie authentication.
        password: Password for ``username``.
        expire_after_s: Entry lifetime in seconds; ``0`` disables expiry.
        timeout_s: HTTP timeout applied to every request.
    """

    url: str | None = None
    protocol: str = "http"
    host: str = "localhost"
    port: int = 5984
    db: str = DEFAULT_DB_NAME
    username: str | None = None
    password: str | None = None
    expire_after_s: float = DEFAULT_EXPIRE_AFTER_S
    timeout_s: float = 30.0

    def __post_init__(self) -> None:
        if self.expire_after_s < 0:
            raise ValueError("expire_after_s must be >= 0")
        if not self.db.strip():
            raise ValueError("db must be non-empty")

    @property
    def has_auth(self) -> bool:
        return bool(self.username)

    def resolved_url(self) -> str:
        """Return the server base URL without a trailing slash."""
        if self.url:
            return self.url.rstrip("/")
        return f"{self.protocol}://{self.host}:{self.port}"

    @staticmethod
    def from_env() -> "CouchDBSettings":
        """Load settings from ``AGENTCACHE_*`` environment variables."""
        return CouchDBSettings(
            url=os.getenv("AGENTCACHE_COUCHDB_URL") or None,
            protocol=os.getenv("AGENTCACHE_COUCHDB_PROTOCOL", "http"),
            host=os.getenv("AGENTCACHE_COUCHDB_HOST", "localhost"),
            port=int(os.getenv("AGENTCACHE_COUCHDB_PORT", "5984")),
            db=os.getenv("AGENTCACHE_COUCHDB_DB", DEFAULT_DB_NAME),
            username=os.getenv("AGENTCACHE_COUCHDB_USERNAME") or None,
            password=os.getenv("AGENTCACHE_COUCHDB_PASSWORD") or None,
            expire_after_s=float(
                os.getenv("AGENTCACHE_EXPIRE_AFTER_S", str(DEFAULT_EXPIRE_AFTER_S))
            ),
            timeout_s=float(os.getenv("AGENTCACHE_COUCHDB_TIMEOUT_S", "30")),
        )
