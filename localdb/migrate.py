from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from .collection import LocalDatabase
from .errors import LocalDbError
from .schema import COLLECTIONS, COPY_ORDER

logger = logging.getLogger(__name__)


def init_local_db(db_dir: Path) -> list[Path]:
    """Create the database directory and an empty file per registered collection."""
    db = LocalDatabase(Path(db_dir))
    db.init()
    return [db.store_for(name).path for name in db.names()]


def _collection(client: Any, name: str) -> Any:
    # LocalClient serves unregistered collections only through collection(name).
    getter = getattr(client, "collection", None)
    if callable(getter):
        return getter(name)
    return getattr(client, name)


def _existing(target: Any, key: str, value: Any) -> bool:
    return target.find_unique(where={key: value}) is not None


def copy_collections(source: Any, target: Any, names: Iterable[str] | None = None) -> dict[str, int]:
    """
    Copy every document of each collection from `source` to `target` (either
    backend), parents first. A document is skipped when its natural key, or
    its id for collections without one, already exists in the target. Ids and
    timestamps are carried over so id-based relations keep pointing at the
    right documents.

    Returns the number of documents copied per collection. Documents the target
    rejects are logged and skipped; the copy carries on with the next one.
    """
    wanted = list(names) if names is not None else list(COPY_ORDER)
    copied: dict[str, int] = {}
    for name in wanted:
        key = COLLECTIONS[name].natural_key if name in COLLECTIONS else "id"
        src = _collection(source, name)
        dst = _collection(target, name)
        count = 0
        for doc in src.find_many():
            value = doc.get(key)
            if value is not None and _existing(dst, key, value):
                continue
            try:
                dst.create(data=doc)
            except LocalDbError as e:
                logger.warning("Skipping %s %s=%r: %s", name, key, value, e)
                continue
            count += 1
        copied[name] = count
        logger.info("Copied %d %s documents", count, name)
    return copied
