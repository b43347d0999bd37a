from __future__ import annotations

import json
import uuid
from urllib.parse import unquote

import httpx
import pytest

from agentcache import CouchDBCache, CouchDBConnector, CouchDBSettings

SESSION_COOKIE = "AuthSession=YWRtaW46NjU0MzIx"


def _json(status: int, body: dict, headers: dict | None = None) -> httpx.Response:
    return httpx.Response(status, json=body, headers=headers)


class FakeCouchDB:
    """Just enough of the CouchDB HTTP API to back the cache."""

    def __init__(self, *, users: dict[str, str] | None = None) -> None:
        self.users = users or {}
        self.databases: dict[str, dict[str, dict]] = {}
        self.requests: list[httpx.Request] = []
        self.set_cookie: str | None = (
            f"{SESSION_COOKIE}; Version=1; Path=/; HttpOnly"
        )
        self.create_db_status: int | None = None
        self.conflict_on_put = False
        self.offline = False

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and r.url.path == path
        ]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("connection refused", request=request)

        raw_path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        parts = [unquote(p) for p in raw_path.strip("/").split("/") if p]

        if parts == ["_session"] and request.method == "POST":
            return self._session(request)

        if self.users and request.headers.get("cookie") != SESSION_COOKIE:
            return _json(401, {"error": "unauthorized", "reason": "You are not authorized."})

        if len(parts) == 1 and request.method == "PUT":
            return self._create_db(parts[0])
        if len(parts) == 2:
            return self._document(request, parts[0], parts[1])
        return _json(400, {"error": "bad_request", "reason": "unsupported"})

    def _session(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        if self.users.get(body.get("name")) != body.get("password"):
            return _json(
                401,
                {"error": "unauthorized", "reason": "Name or password is incorrect."},
            )
        headers = {"set-cookie": self.set_cookie} if self.set_cookie else None
        return _json(200, {"ok": True, "name": body["name"]}, headers)

    def _create_db(self, name: str) -> httpx.Response:
        if self.create_db_status is not None:
            return _json(self.create_db_status, {"error": "forbidden", "reason": "nope"})
        if name in self.databases:
            return _json(
                412,
                {"error": "file_exists", "reason": "The database could not be created."},
            )
        self.databases[name] = {}
        return _json(201, {"ok": True})

    def _document(self, request: httpx.Request, db_name: str, doc_id: str) -> httpx.Response:
        if doc_id.startswith("_"):
            return _json(
                400,
                {
                    "error": "illegal_docid",
                    "reason": "Only reserved document ids may start with underscore.",
                },
            )
        db = self.databases.get(db_name)
        if db is None:
            return _json(404, {"error": "not_found", "reason": "Database does not exist."})
        current = db.get(doc_id)
        missing = _json(404, {"error": "not_found", "reason": "missing"})

        if request.method == "GET":
            return _json(200, current) if current is not None else missing

        if request.method == "HEAD":
            if current is None:
                return httpx.Response(404)
            return httpx.Response(200, headers={"etag": f'"{current["_rev"]}"'})

        if request.method == "PUT":
            body = json.loads(request.content)
            if self.conflict_on_put or (
                current is not None and body.get("_rev") != current["_rev"]
            ):
                return _json(409, {"error": "conflict", "reason": "Document update conflict."})
            generation = int(current["_rev"].split("-")[0]) + 1 if current else 1
            rev = f"{generation}-{uuid.uuid4().hex}"
            db[doc_id] = {**body, "_id": doc_id, "_rev": rev}
            return _json(201, {"ok": True, "id": doc_id, "rev": rev})

        if request.method == "DELETE":
            if current is None:
                return missing
            if request.url.params.get("rev") != current["_rev"]:
                return _json(409, {"error": "conflict", "reason": "Document update conflict."})
            del db[doc_id]
            return _json(200, {"ok": True, "id": doc_id})

        return _json(405, {"error": "method_not_allowed", "reason": request.method})


@pytest.fixture
def couch() -> FakeCouchDB:
    return FakeCouchDB()


@pytest.fixture
def make_cache(couch: FakeCouchDB):
    def _make(**overrides) -> CouchDBCache:
        settings = CouchDBSettings(**{"expire_after_s": 60, **overrides})
        connector = CouchDBConnector(transport=couch.transport)
        return CouchDBCache(settings, connector=connector)

    return _make
