"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Minimal document-store client used by ``CouchDBCache``.

The cache only depends on the three protocols below; ``CouchDBConnector``
implements them over the CouchDB HTTP API with ``httpx``.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from ..errors import (
    AuthenticationError,
    CollectionExistsError,
    ConnectionClosedError,
    EntryNotFoundError,
    RevisionConflictError,
    StoreConnectionError,
    StoreError,
)

logger = logging.getLogger("agentcache.couchdb")

SESSION_COOKIE_NAME = "AuthSession"


class DocumentCollection(Protocol):
    """Handle bound to one named collection."""

    name: str

    async def get_document(self, key: str) -> dict[str, Any] | None: ...

    async def put_document(self, key: str, document: dict[str, Any]) -> str: ...

    async def delete_document(self, key: str, revision: str) -> None: ...


class DocumentStore(Protocol):
    """Live connection to a document store."""

    async def create_collection(self, name: str) -> None: ...

    def use_collection(self, name: str) -> DocumentCollection: ...

    async def aclose(self) -> None: ...


class DocumentStoreConnector(Protocol):
    """Authenticates against a store and opens connections to it."""

    async def authenticate(self, url: str, username: str, password: str) -> str: ...

    async def open_connection(
        self, url: str, session_credential: str | None
    ) -> DocumentStore: ...


def _error_detail(response: httpx.Response) -> str:
    """Extract CouchDB's ``error: reason`` pair from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if not isinstance(body, dict):
        return response.reason_phrase
    error = body.get("error")
    reason = body.get("reason")
    if error and reason:
        return f"{error}: {reason}"
    return str(error or reason or response.reason_phrase)


def _raise_for_status(response: httpx.Response, action: str) -> None:
    if response.is_success:
        return
    message = (
        f"CouchDB {action} failed with HTTP {response.status_code}: "
        f"{_error_detail(response)}"
    )
    if response.status_code == 409:
        raise RevisionConflictError(message, status_code=409)
    raise StoreError(message, status_code=response.status_code)


def _session_cookie(response: httpx.Response) -> str | None:
    """Return the ``AuthSession=...`` pair from ``Set-Cookie`` headers."""
    for header in response.headers.get_list("set-cookie"):
        pair = header.split(";", 1)[0].strip()
        name, _, value = pair.partition("=")
        if name.strip() == SESSION_COOKIE_NAME and value:
            return pair
    return None


async def _send(
    client: httpx.AsyncClient, method: str, path: str, **kwargs: Any
) -> httpx.Response:
    """Send one request, mapping failures onto the cache error types."""
    if client.is_closed:
        raise ConnectionClosedError()
    try:
        return await client.request(method, path, **kwargs)
    except httpx.TransportError as exc:
        if client.is_closed:
            raise ConnectionClosedError() from exc
        raise StoreConnectionError(f"CouchDB {method} {path} failed: {exc}") from exc
    except RuntimeError as exc:
        # httpx refuses to send on a client closed while we were suspended.
        if client.is_closed:
            raise ConnectionClosedError() from exc
        raise


def encode_doc_id(key: str) -> str:
    """
    Map a cache key to a CouchDB document id.

    CouchDB reserves ids starting with ``_``, so such keys (and keys
    starting with the ``~`` escape itself) get one ``~`` prepended.
    """
    if key.startswith(("_", "~")):
        return f"~{key}"
    return key


class CouchDBDatabase:
    """One CouchDB database addressed through a shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient, name: str) -> None:
        self._client = client
        self.name = name

    def _doc_path(self, key: str) -> str:
        doc_id = encode_doc_id(key)
        return f"/{quote(self.name, safe='')}/{quote(doc_id, safe='')}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return await _send(self._client, method, path, **kwargs)

    async def get_document(self, key: str) -> dict[str, Any] | None:
        """Return the stored document, or ``None`` when the key is absent."""
        response = await self._request("GET", self._doc_path(key))
        if response.status_code == 404:
            return None
        _raise_for_status(response, f"get of '{key}'")
        body = response.json()
        if not isinstance(body, dict):
            raise StoreError(f"CouchDB returned a non-object document for '{key}'")
        return body

    async def current_revision(self, key: str) -> str | None:
        """Look up the latest revision of ``key`` without fetching its body."""
        response = await self._request("HEAD", self._doc_path(key))
        if response.status_code == 404:
            return None
        _raise_for_status(response, f"revision lookup of '{key}'")
        etag = response.headers.get("etag")
        return etag.strip('"') if etag else None

    async def put_document(self, key: str, document: dict[str, Any]) -> str:
        """
        Write ``document`` under ``key``, overwriting any existing revision.

        Returns the new revision. A concurrent writer landing between the
        revision lookup and the write surfaces as ``RevisionConflictError``.
        """
        body = {k: v for k, v in document.items() if k not in ("_id", "_rev")}
        revision = await self.current_revision(key)
        if revision is not None:
            body["_rev"] = revision
        response = await self._request("PUT", self._doc_path(key), json=body)
        _raise_for_status(response, f"put of '{key}'")
        return str(response.json().get("rev", ""))

    async def delete_document(self, key: str, revision: str) -> None:
        response = await self._request(
            "DELETE", self._doc_path(key), params={"rev": revision}
        )
        if response.status_code == 404:
            raise EntryNotFoundError(key)
        _raise_for_status(response, f"delete of '{key}'")


class CouchDBServer:
    """Connection to a CouchDB server; owns the HTTP client."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def create_collection(self, name: str) -> None:
        path = f"/{quote(name, safe='')}"
        response = await _send(self._client, "PUT", path)
        if response.status_code == 412:
            raise CollectionExistsError(
                f"CouchDB database '{name}' already exists", status_code=412
            )
        _raise_for_status(response, f"create of database '{name}'")

    def use_collection(self, name: str) -> CouchDBDatabase:
        return CouchDBDatabase(self._client, name)

    async def aclose(self) -> None:
        await self._client.aclose()


class CouchDBConnector:
    """
    Opens authenticated connections to CouchDB.

    Args:
        timeout_s: Timeout applied to every HTTP request.
        transport: Optional ``httpx`` transport, e.g. ``httpx.MockTransport``
            in tests.
    """

    def __init__(
        self,
        *,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._transport = transport

    def _client(
        self, url: str, headers: dict[str, str] | None = None
    ) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=url,
            headers=headers,
            timeout=self._timeout_s,
            transport=self._transport,
        )

    async def authenticate(self, url: str, username: str, password: str) -> str:
        """Open a cookie session and return the session credential."""
        try:
            async with self._client(url) as client:
                response = await client.post(
                    "/_session", json={"name": username, "password": password}
                )
        except httpx.TransportError as exc:
            raise AuthenticationError(
                f"CouchDB session request failed: {exc}"
            ) from exc
        if not response.is_success:
            raise AuthenticationError(
                f"CouchDB rejected credentials with HTTP {response.status_code}: "
                f"{_error_detail(response)}"
            )
        cookie = _session_cookie(response)
        if cookie is None:
            raise AuthenticationError("no session credential in response")
        logger.debug("Opened CouchDB session at %s", url)
        return cookie

    async def open_connection(
        self, url: str, session_credential: str | None
    ) -> CouchDBServer:
        headers = {"Accept": "application/json"}
        if session_credential:
            headers["Cookie"] = session_credential
        return CouchDBServer(self._client(url, headers))
