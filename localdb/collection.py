from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

from . import query
from .dates import now_iso
from .disk_store import DiskCollectionStore
from .errors import NotFound, QueryOptionsError
from .ids import new_id
from .paths import collection_path, ensure_dir
from .relations import Relation, merge_relation_select, resolve_includes, translate_references
from .schema import COLLECTIONS, CollectionSchema, schema_for

logger = logging.getLogger(__name__)

Document = dict[str, Any]

UPDATE_OPERATORS = frozenset({"set", "push", "increment", "decrement", "multiply", "divide"})


def is_update_operator(value: Any) -> bool:
    return isinstance(value, Mapping) and len(value) == 1 and next(iter(value)) in UPDATE_OPERATORS


def _apply_operator(field: str, current: Any, op: str, arg: Any) -> Any:
    if op == "set":
        return copy.deepcopy(arg)
    if op == "push":
        if current is None:
            current = []
        if not isinstance(current, list):
            raise QueryOptionsError(f"Cannot push onto non-list field {field!r}")
        added = list(arg) if isinstance(arg, (list, tuple)) else [arg]
        return [*current, *copy.deepcopy(added)]

    # Arithmetic: a missing field counts as 0.
    if current is None:
        current = 0
    if isinstance(current, bool) or not isinstance(current, (int, float)):
        raise QueryOptionsError(f"Cannot {op} non-numeric field {field!r}")
    if isinstance(arg, bool) or not isinstance(arg, (int, float)):
        raise QueryOptionsError(f"{op} on {field!r} expects a number, got {arg!r}")
    if op == "increment":
        return current + arg
    if op == "decrement":
        return current - arg
    if op == "multiply":
        return current * arg
    if arg == 0:
        raise QueryOptionsError(f"divide on {field!r} by zero")
    if isinstance(current, int) and isinstance(arg, int):
        return int(current / arg)
    return current / arg


def apply_update(doc: Mapping[str, Any], data: Mapping[str, Any], *, now: str) -> Document:
    """
    Merge `data` into `doc`: only provided fields change, updatedAt is refreshed.

    A single-key mapping whose key is an update operator is applied to the
    current value, so {"lvocabuIDs": {"push": "V1"}} appends and
    {"points": {"increment": 5}} adds. Any other value replaces the field.
    """
    out = dict(doc)
    for key, value in data.items():
        if is_update_operator(value):
            ((op, arg),) = value.items()
            out[key] = _apply_operator(key, out.get(key), op, arg)
        else:
            out[key] = copy.deepcopy(value)
    out["updatedAt"] = now
    return out


class LocalDatabase:
    """
    The set of collection files under one directory.

    Nothing is cached between calls: every read goes back to disk, so each
    query sees the latest store.
    """

    def __init__(
        self,
        db_dir: Path,
        *,
        schemas: Mapping[str, CollectionSchema] | None = None,
        log_queries: bool = False,
    ):
        self._dir = Path(db_dir)
        self._schemas = dict(COLLECTIONS if schemas is None else schemas)
        self._log_queries = log_queries
        self._collections: dict[str, LocalCollection] = {}

    @property
    def db_dir(self) -> Path:
        return self._dir

    @property
    def log_queries(self) -> bool:
        return self._log_queries

    def schema(self, name: str) -> CollectionSchema:
        return self._schemas.get(name) or schema_for(name)

    def names(self) -> list[str]:
        return list(self._schemas)

    def relations_of(self, name: str) -> Sequence[Relation]:
        return self.schema(name).relations

    def store_for(self, name: str) -> DiskCollectionStore:
        return DiskCollectionStore(collection_path(self._dir, self.schema(name).file_name))

    def load(self, name: str) -> list[Document]:
        return self.store_for(name).load()

    def collection(self, name: str) -> LocalCollection:
        coll = self._collections.get(name)
        if coll is None:
            coll = LocalCollection(self, self.schema(name))
            self._collections[name] = coll
        return coll

    def init(self) -> None:
        """Create the directory and an empty file for every registered collection."""
        ensure_dir(self._dir)
        for name in self._schemas:
            self.store_for(name).init()


class LocalCollection:
    """
    CRUD over one collection file. Arguments are the unwrapped call options;
    values are JSON-ready (dates already ISO strings).

    Every mutation is load-entire-collection, mutate in memory,
    store-entire-collection, all under the collection's path lock.
    """

    def __init__(self, db: LocalDatabase, schema: CollectionSchema):
        self._db = db
        self._schema = schema
        self._store = db.store_for(schema.name)

    @property
    def name(self) -> str:
        return self._schema.name

    @property
    def schema(self) -> CollectionSchema:
        return self._schema

    @property
    def store(self) -> DiskCollectionStore:
        return self._store

    # -- helpers -----------------------------------------------------------

    def _translate(self, values: Mapping[str, Any] | None) -> dict[str, Any] | None:
        if not self._schema.references:
            return None if values is None else dict(values)
        return translate_references(self._db.load, self._schema.references, values)

    def _log(self, op: str, where: Any, detail: str) -> None:
        if self._db.log_queries:
            logger.debug("%s.%s where=%r %s", self.name, op, where, detail)
        else:
            logger.debug("%s.%s %s", self.name, op, detail)

    def _require_where(self, op: str, where: Mapping[str, Any] | None) -> dict[str, Any]:
        if not where:
            raise QueryOptionsError(f"{self.name}.{op} requires a non-empty where clause")
        return self._translate(where) or {}

    def _prepare(self, data: Mapping[str, Any]) -> dict[str, Any]:
        if not isinstance(data, Mapping):
            raise QueryOptionsError(f"{self.name}.create expects a mapping, got {type(data).__name__}")
        return self._translate(data) or {}

    def _new_document(self, values: Mapping[str, Any], now: str) -> Document:
        doc: Document = {"id": new_id(), **copy.deepcopy(dict(self._schema.defaults)), **copy.deepcopy(values)}
        # Preserved when present so bulk copies keep their original timestamps.
        for key, fallback in (("id", None), ("createdAt", now), ("updatedAt", now)):
            if doc.get(key) is None:
                doc[key] = fallback if fallback is not None else new_id()
        return doc

    def shape(
        self,
        rows: list[Document],
        select: Mapping[str, Any] | None,
        include: Mapping[str, Any] | None,
    ) -> list[Document]:
        spec = merge_relation_select(include, select, self._schema.relation_names())
        rows = resolve_includes(self._db.load, self._db.relations_of, self.name, rows, spec)
        return [query.project(r, select) for r in rows]

    # -- reads -------------------------------------------------------------

    def find_many(
        self,
        where: Mapping[str, Any] | None = None,
        select: Mapping[str, Any] | None = None,
        include: Mapping[str, Any] | None = None,
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[Document]:
        docs = self._store.load()
        rows = query.find(docs, self._translate(where), order_by=order_by, skip=skip, take=take)
        self._log("find_many", where, f"-> {len(rows)}/{len(docs)}")
        return self.shape(rows, select, include)

    def find_first(
        self,
        where: Mapping[str, Any] | None = None,
        select: Mapping[str, Any] | None = None,
        include: Mapping[str, Any] | None = None,
        order_by: Any = None,
        skip: int | None = None,
    ) -> Document | None:
        rows = self.find_many(where, select, include, order_by, skip, 1)
        return rows[0] if rows else None

    def find_unique(
        self,
        where: Mapping[str, Any],
        select: Mapping[str, Any] | None = None,
        include: Mapping[str, Any] | None = None,
    ) -> Document | None:
        docs = self._store.load()
        found = query.find_unique(docs, self._require_where("find_unique", where))
        self._log("find_unique", where, "hit" if found is not None else "miss")
        if found is None:
            return None
        return self.shape([found], select, include)[0]

    def count(self, where: Mapping[str, Any] | None = None) -> int:
        return query.count(self._store.load(), self._translate(where))

    # -- writes ------------------------------------------------------------

    def create(self, data: Mapping[str, Any]) -> Document:
        values = self._prepare(data)
        with self._store.lock:
            docs = self._store.load()
            doc = self._new_document(values, now_iso())
            docs.append(doc)
            self._store.store(docs)
        self._log("create", None, f"id={doc['id']}")
        return dict(doc)

    def create_many(self, rows: Sequence[Mapping[str, Any]]) -> int:
        if isinstance(rows, Mapping):
            rows = [rows]
        now = now_iso()
        new_docs = [self._new_document(self._prepare(r), now) for r in rows]
        if not new_docs:
            return 0
        with self._store.lock:
            docs = self._store.load()
            docs.extend(new_docs)
            self._store.store(docs)
        self._log("create_many", None, f"+{len(new_docs)}")
        return len(new_docs)

    def update(self, where: Mapping[str, Any], data: Mapping[str, Any]) -> Document:
        cond = self._require_where("update", where)
        changes = self._translate(data) or {}
        with self._store.lock:
            docs = self._store.load()
            pos = query.find_index(docs, cond)
            if pos < 0:
                raise NotFound(self.name, where)
            docs[pos] = apply_update(docs[pos], changes, now=now_iso())
            self._store.store(docs)
            updated = docs[pos]
        self._log("update", where, f"id={updated.get('id')}")
        return dict(updated)

    def update_many(self, where: Mapping[str, Any] | None, data: Mapping[str, Any]) -> int:
        cond = self._translate(where)
        changes = self._translate(data) or {}
        now = now_iso()
        with self._store.lock:
            docs = self._store.load()
            hits = 0
            for pos, doc in enumerate(docs):
                if query.matches(doc, cond):
                    docs[pos] = apply_update(doc, changes, now=now)
                    hits += 1
            if hits:
                self._store.store(docs)
        self._log("update_many", where, f"~{hits}")
        return hits

    def upsert(
        self,
        where: Mapping[str, Any],
        create: Mapping[str, Any],
        update: Mapping[str, Any],
    ) -> Document:
        cond = self._require_where("upsert", where)
        values = self._prepare(create)
        changes = self._translate(update) or {}
        now = now_iso()
        with self._store.lock:
            docs = self._store.load()
            pos = query.find_index(docs, cond)
            if pos < 0:
                docs.append(self._new_document(values, now))
                pos = len(docs) - 1
            else:
                docs[pos] = apply_update(docs[pos], changes, now=now)
            self._store.store(docs)
            result = docs[pos]
        self._log("upsert", where, f"id={result.get('id')}")
        return dict(result)

    def delete(self, where: Mapping[str, Any]) -> Document:
        cond = self._require_where("delete", where)
        with self._store.lock:
            docs = self._store.load()
            pos = query.find_index(docs, cond)
            if pos < 0:
                raise NotFound(self.name, where)
            removed = docs.pop(pos)
            self._store.store(docs)
        self._log("delete", where, f"id={removed.get('id')}")
        return removed

    def delete_many(self, where: Mapping[str, Any] | None = None) -> int:
        cond = self._translate(where)
        with self._store.lock:
            docs = self._store.load()
            kept = [d for d in docs if not query.matches(d, cond)]
            removed = len(docs) - len(kept)
            if removed:
                self._store.store(kept)
        self._log("delete_many", where, f"-{removed}")
        return removed
