"""
localdb: a file-backed stand-in for a remote document-database client.

Each collection lives in one JSON file under the database directory
(default ./.local-db):

  .local-db/
    users.json         [{"id": ..., "userId": ..., "createdAt": ..., ...}, ...]
    students.json
    vocabularies.json
    words.json
    ...

Application code calls the same operations whichever backend is active:

  client = get_client()
  client.user.create(data={"userId": uid, "name": "Ann"})
  client.vocabulary.find_many(where={"name": {"contains": "foo"}},
                              include={"_count": {"select": {"words": True}}})

Reads flatten documents stored in the old {"data": {...}} envelope. Writes
rewrite the whole collection file under a per-file lock.
"""

from __future__ import annotations

from .errors import (
    ConfigurationError,
    KeyGenerationExhausted,
    LocalDbError,
    NotFound,
    QueryOptionsError,
    StorageUnavailable,
    UnsupportedFilterError,
)
from .facade import CollectionClient, LocalClient, create_client, get_client, reset_client
from .ids import generate_unique_key, new_id, unique_key_for
from .migrate import copy_collections, init_local_db
from .models import (
    RECORD_TYPES,
    AdminRecord,
    CommentRecord,
    CouponRecord,
    DocumentRecord,
    StoreRecord,
    StudentRecord,
    SupplierRecord,
    UserRecord,
    VocabularyRecord,
    WordRecord,
    record_for,
)
from .normalize import normalize_document
from .repositories import AsyncCollectionClient, AsyncLocalClient
from .settings import Settings, get_settings

__all__ = [
    "RECORD_TYPES",
    "AdminRecord",
    "AsyncCollectionClient",
    "AsyncLocalClient",
    "CollectionClient",
    "CommentRecord",
    "ConfigurationError",
    "CouponRecord",
    "DocumentRecord",
    "KeyGenerationExhausted",
    "LocalClient",
    "LocalDbError",
    "NotFound",
    "QueryOptionsError",
    "Settings",
    "StorageUnavailable",
    "StoreRecord",
    "StudentRecord",
    "SupplierRecord",
    "UnsupportedFilterError",
    "UserRecord",
    "VocabularyRecord",
    "WordRecord",
    "copy_collections",
    "create_client",
    "generate_unique_key",
    "get_client",
    "get_settings",
    "init_local_db",
    "new_id",
    "normalize_document",
    "record_for",
    "reset_client",
    "unique_key_for",
]
