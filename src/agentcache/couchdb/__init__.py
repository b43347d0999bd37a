"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

CouchDB cache backend and its document-store client.
"""

from .cache import CouchDBCache
from .client import (
    CouchDBConnector,
    CouchDBDatabase,
    CouchDBServer,
    DocumentCollection,
    DocumentStore,
    DocumentStoreConnector,
)

__all__ = [
    "CouchDBCache",
    "CouchDBConnector",
    "CouchDBServer",
    "CouchDBDatabase",
    "DocumentStoreConnector",
    "DocumentStore",
    "DocumentCollection",
]
