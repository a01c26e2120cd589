from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from .errors import StorageUnavailable
from .json_store import atomic_write_json, read_json
from .locks import GLOBAL_PATH_LOCKS
from .normalize import normalize_document

logger = logging.getLogger(__name__)

Document = dict[str, Any]


class DiskCollectionStore:
    """
    Stores one collection as a single JSON array on disk at a fixed path.

    - Missing or empty file loads as an empty collection.
    - A corrupt file (bad JSON, not an array, non-object entries) raises
      StorageUnavailable instead of silently reading as empty.
    - Every loaded document goes through the legacy shape normalizer.
    - Writes are whole-file and atomic.
    """

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @property
    def lock(self) -> threading.RLock:
        return GLOBAL_PATH_LOCKS.lock_for(self._path)

    def init(self) -> None:
        with self.lock:
            if not self._path.exists():
                atomic_write_json(self._path, [])

    def load(self) -> list[Document]:
        with self.lock:
            raw = read_json(self._path)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise StorageUnavailable(f"{self._path} does not hold a JSON array")
        docs: list[Document] = []
        for pos, item in enumerate(raw):
            if not isinstance(item, dict):
                raise StorageUnavailable(f"{self._path}[{pos}] is not a JSON object")
            docs.append(normalize_document(item))
        return docs

    def store(self, docs: list[Document]) -> None:
        with self.lock:
            atomic_write_json(self._path, docs)
        logger.debug("stored %d documents to %s", len(docs), self._path)
