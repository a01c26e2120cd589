from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .collection import LocalCollection, LocalDatabase
from .dates import rewrap_dates, to_storage
from .errors import ConfigurationError, QueryOptionsError
from .interfaces import DatabaseClient
from .schema import COLLECTIONS
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

Document = dict[str, Any]
RemoteFactory = Callable[[Settings], DatabaseClient]


class CallOptions(BaseModel):
    """
    The remote driver's option object. Accepts its camelCase `orderBy` as well
    as `order_by`; unknown keys are rejected.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    where: dict[str, Any] | None = None
    data: dict[str, Any] | list[dict[str, Any]] | None = None
    select: dict[str, Any] | None = None
    include: dict[str, Any] | None = None
    order_by: dict[str, Any] | list[dict[str, Any]] | None = Field(default=None, alias="orderBy")
    skip: int | None = Field(default=None, ge=0)
    take: int | None = Field(default=None, ge=0)
    create: dict[str, Any] | None = None
    update: dict[str, Any] | None = None


_READ = {"where", "select", "include"}
ALLOWED_OPTIONS: dict[str, set[str]] = {
    "create": {"data", "select", "include"},
    "create_many": {"data"},
    "find_unique": _READ,
    "find_first": _READ | {"order_by", "skip"},
    "find_many": _READ | {"order_by", "skip", "take"},
    "count": {"where"},
    "update": {"where", "data", "select", "include"},
    "update_many": {"where", "data"},
    "upsert": {"where", "create", "update", "select", "include"},
    "delete": {"where", "select", "include"},
    "delete_many": {"where"},
}


class CollectionClient:
    """
    One collection behind the remote driver's calling convention:

        client.user.find_unique(where={"userId": uid}, include={"studentData": True})
        client.user.find_unique({"where": {"userId": uid}})

    Options are unwrapped into LocalCollection's positional arguments. Dates in
    where/data are stored as ISO strings and come back as datetime objects,
    matching what the remote client returns.
    """

    def __init__(self, engine: LocalCollection, db: LocalDatabase):
        self._engine = engine
        self._db = db

    @property
    def name(self) -> str:
        return self._engine.name

    def _options(self, op: str, options: Mapping[str, Any] | None, kwargs: Mapping[str, Any]) -> CallOptions:
        raw = {**(options or {}), **kwargs}
        try:
            parsed = CallOptions.model_validate(raw)
        except ValidationError as e:
            raise QueryOptionsError(f"Invalid options for {self.name}.{op}: {e}") from e
        extra = parsed.model_fields_set - ALLOWED_OPTIONS[op]
        if extra:
            raise QueryOptionsError(f"{self.name}.{op} does not accept {sorted(extra)}")
        return parsed

    def _rewrap(self, doc: Document | None, collection: str | None = None) -> Document | None:
        if doc is None:
            return None
        schema = self._db.schema(collection or self.name)
        out = rewrap_dates(doc, schema.date_fields)
        for rel in schema.relations:
            if rel.name not in out:
                continue
            value = out[rel.name]
            if isinstance(value, list):
                out[rel.name] = [self._rewrap(v, rel.target) for v in value]
            elif isinstance(value, dict):
                out[rel.name] = self._rewrap(value, rel.target)
        return out

    def _one(self, opts: CallOptions, doc: Document) -> Document:
        # Writes return the stored document; select/include are applied on top.
        if opts.select or opts.include:
            doc = self._engine.shape([doc], opts.select, opts.include)[0]
        return self._rewrap(doc)

    # -- reads -------------------------------------------------------------

    def find_unique(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document | None:
        opts = self._options("find_unique", options, kwargs)
        doc = self._engine.find_unique(to_storage(opts.where), opts.select, opts.include)
        return self._rewrap(doc)

    def find_first(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document | None:
        opts = self._options("find_first", options, kwargs)
        doc = self._engine.find_first(
            to_storage(opts.where), opts.select, opts.include, opts.order_by, opts.skip
        )
        return self._rewrap(doc)

    def find_many(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> list[Document]:
        opts = self._options("find_many", options, kwargs)
        rows = self._engine.find_many(
            to_storage(opts.where), opts.select, opts.include, opts.order_by, opts.skip, opts.take
        )
        return [self._rewrap(r) for r in rows]

    def count(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> int:
        opts = self._options("count", options, kwargs)
        return self._engine.count(to_storage(opts.where))

    # -- writes ------------------------------------------------------------

    def create(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document:
        opts = self._options("create", options, kwargs)
        if not isinstance(opts.data, dict):
            raise QueryOptionsError(f"{self.name}.create requires data to be a mapping")
        return self._one(opts, self._engine.create(to_storage(opts.data)))

    def create_many(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> dict[str, int]:
        opts = self._options("create_many", options, kwargs)
        rows = opts.data if isinstance(opts.data, list) else [opts.data] if opts.data else []
        return {"count": self._engine.create_many(to_storage(rows))}

    def update(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document:
        opts = self._options("update", options, kwargs)
        if not isinstance(opts.data, dict):
            raise QueryOptionsError(f"{self.name}.update requires data to be a mapping")
        doc = self._engine.update(to_storage(opts.where), to_storage(opts.data))
        return self._one(opts, doc)

    def update_many(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> dict[str, int]:
        opts = self._options("update_many", options, kwargs)
        if not isinstance(opts.data, dict):
            raise QueryOptionsError(f"{self.name}.update_many requires data to be a mapping")
        return {"count": self._engine.update_many(to_storage(opts.where), to_storage(opts.data))}

    def upsert(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document:
        opts = self._options("upsert", options, kwargs)
        doc = self._engine.upsert(
            to_storage(opts.where), to_storage(opts.create or {}), to_storage(opts.update or {})
        )
        return self._one(opts, doc)

    def delete(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document:
        opts = self._options("delete", options, kwargs)
        # Relations are resolved from the removed document itself, so the
        # lookup and the removal happen in one locked step.
        return self._one(opts, self._engine.delete(to_storage(opts.where)))

    def delete_many(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> dict[str, int]:
        opts = self._options("delete_many", options, kwargs)
        return {"count": self._engine.delete_many(to_storage(opts.where))}


class LocalClient:
    """
    File-backed stand-in for the remote database client. Collections are
    attributes named like the remote client's models: `client.user`,
    `client.student`, `client.vocabulary`, ...
    """

    def __init__(self, db_dir: Path, *, log_queries: bool = False, init: bool = True):
        self._db = LocalDatabase(Path(db_dir), log_queries=log_queries)
        self._clients: dict[str, CollectionClient] = {}
        if init:
            self._db.init()

    @property
    def database(self) -> LocalDatabase:
        return self._db

    def collection(self, name: str) -> CollectionClient:
        client = self._clients.get(name)
        if client is None:
            client = CollectionClient(self._db.collection(name), self._db)
            self._clients[name] = client
        return client

    def __getattr__(self, name: str) -> CollectionClient:
        if name in COLLECTIONS:
            return self.collection(name)
        raise AttributeError(f"{type(self).__name__} has no collection {name!r}")

    def disconnect(self) -> None:
        # Nothing is held open between calls.
        return None


def create_client(settings: Settings | None = None, *, remote_factory: RemoteFactory | None = None) -> DatabaseClient:
    settings = settings or get_settings()
    if settings.use_local_db:
        logger.info("Using local JSON database at %s", settings.local_db_dir)
        return LocalClient(settings.local_db_dir, log_queries=settings.debug_log_queries)
    if remote_factory is None:
        raise ConfigurationError(
            "Remote database mode needs a client factory; set DATABASE_local=true to use local files"
        )
    logger.info("Using remote database client")
    return remote_factory(settings)


_client: DatabaseClient | None = None
_client_lock = threading.Lock()


def get_client(*, remote_factory: RemoteFactory | None = None) -> DatabaseClient:
    """
    Process-wide client. The backend switch is read once, on first call; later
    calls return the same client regardless of environment changes.
    """
    global _client
    with _client_lock:
        if _client is None:
            load_dotenv()
            _client = create_client(get_settings(), remote_factory=remote_factory)
        return _client


def reset_client() -> None:
    global _client
    with _client_lock:
        if _client is not None:
            _client.disconnect()
        _client = None
