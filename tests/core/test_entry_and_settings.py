from __future__ import annotations

import pytest

from agentcache import CacheEntry, CouchDBSettings
from agentcache.utils import format_timestamp, parse_timestamp


def test_timestamp_roundtrip_keeps_milliseconds():
    text = format_timestamp(1_700_000_000_007)
    assert text == "2023-11-14T22:13:20.007Z"
    assert parse_timestamp(text) == 1_700_000_000_007


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2023-11-14T22:13:20.000Z", 1_700_000_000_000),
        ("2023-11-14T23:13:20.000+01:00", 1_700_000_000_000),
        ("2023-11-14T22:13:20", 1_700_000_000_000),
        (1_700_000_000_000, 1_700_000_000_000),
        ("yesterday", None),
        ("", None),
        (True, None),
        (None, None),
    ],
)
def test_parse_timestamp(raw, expected):
    assert parse_timestamp(raw) == expected


def test_entry_expiry_boundary():
    entry = CacheEntry(data="v", created_at_ms=1_000)
    assert entry.expires_at_ms(2) == 3_000
    assert not entry.is_expired(now_ms=3_000, expire_after_s=2)
    assert entry.is_expired(now_ms=3_001, expire_after_s=2)
    assert not entry.is_expired(now_ms=10**12, expire_after_s=0)


def test_entry_document_shape():
    doc = CacheEntry(data={"foo": "bar"}, created_at_ms=1_700_000_000_000).to_document()
    assert doc == {"data": {"foo": "bar"}, "createdAt": "2023-11-14T22:13:20.000Z"}

    decoded = CacheEntry.from_document({**doc, "_id": "foo", "_rev": "1-a"})
    assert decoded == CacheEntry(data={"foo": "bar"}, created_at_ms=1_700_000_000_000)


def test_entry_without_timestamp_decodes_as_epoch():
    entry = CacheEntry.from_document({"data": 5})
    assert entry.created_at_ms == 0
    assert entry.is_expired(now_ms=61_000, expire_after_s=60)


def test_settings_url_resolution():
    assert CouchDBSettings().resolved_url() == "http://localhost:5984"
    composed = CouchDBSettings(protocol="https", host="db.example.com", port=6984)
    assert composed.resolved_url() == "https://db.example.com:6984"
    explicit = CouchDBSettings(url="http://couch:5984/", host="ignored")
    assert explicit.resolved_url() == "http://couch:5984"


def test_settings_defaults_and_validation():
    settings = CouchDBSettings()
    assert settings.db == "openamagent"
    assert settings.expire_after_s == 60
    assert not settings.has_auth
    assert CouchDBSettings(expire_after_s=0).expire_after_s == 0

    with pytest.raises(ValueError, match="expire_after_s"):
        CouchDBSettings(expire_after_s=-1)
    with pytest.raises(ValueError, match="db"):
        CouchDBSettings(db="  ")


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("AGENTCACHE_COUCHDB_HOST", "db.example.com")
    monkeypatch.setenv("AGENTCACHE_COUCHDB_PORT", "6000")
    monkeypatch.setenv("AGENTCACHE_COUCHDB_DB", "sessions")
    monkeypatch.setenv("AGENTCACHE_COUCHDB_USERNAME", "admin")
    monkeypatch.setenv("AGENTCACHE_COUCHDB_PASSWORD", "secret123")
    monkeypatch.setenv("AGENTCACHE_EXPIRE_AFTER_S", "600")
    monkeypatch.delenv("AGENTCACHE_COUCHDB_URL", raising=False)

    settings = CouchDBSettings.from_env()
    assert settings.resolved_url() == "http://db.example.com:6000"
    assert settings.db == "sessions"
    assert settings.has_auth
    assert settings.password == "secret123"
    assert settings.expire_after_s == 600
