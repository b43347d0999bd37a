"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache contract shared by every backend, plus the stored entry envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, TypeAlias, runtime_checkable

from .utils import format_timestamp, parse_timestamp

JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]

DATA_FIELD = "data"
CREATED_AT_FIELD = "createdAt"
LEGACY_CREATED_AT_FIELD = "timestamp"


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """
    Envelope stored for one cached value.

    Attributes:
        data: The caller's value, returned verbatim by ``get``.
        created_at_ms: Write time in epoch milliseconds, set once by ``put``.
    """

    data: JSONValue
    created_at_ms: int

    def expires_at_ms(self, expire_after_s: float) -> int:
        return self.created_at_ms + int(expire_after_s * 1000)

    def is_expired(self, *, now_ms: int, expire_after_s: float) -> bool:
        """Return whether the entry is past its window; a zero window never expires."""
        if not expire_after_s:
            return False
        return now_ms > self.expires_at_ms(expire_after_s)

    def to_document(self) -> JSONObject:
        return {
            DATA_FIELD: self.data,
            CREATED_AT_FIELD: format_timestamp(self.created_at_ms),
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> CacheEntry:
        """
        Decode a stored envelope.

        Documents written by older clients carry ``timestamp`` instead of
        ``createdAt``. A document without a readable timestamp decodes as
        created at epoch zero.
        """
        raw = document.get(CREATED_AT_FIELD)
        if raw is None:
            raw = document.get(LEGACY_CREATED_AT_FIELD)
        created_at_ms = parse_timestamp(raw)
        return cls(
            data=document.get(DATA_FIELD),
            created_at_ms=created_at_ms if created_at_ms is not None else 0,
        )


@runtime_checkable
class Cache(Protocol):
    """
    Uniform key/value cache contract.

    Backends are interchangeable: each raises ``EntryNotFoundError`` for
    missing keys, ``EntryExpiredError`` for stale reads, and
    ``ConnectionClosedError`` once ``quit`` has been called.
    """

    backend_id: str

    async def get(self, key: str) -> JSONValue: ...

    async def put(self, key: str, value: JSONValue) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def quit(self) -> None: ...
