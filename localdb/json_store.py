from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .errors import StorageUnavailable


def read_json(path: Path) -> Any | None:
    """
    Read JSON from disk.

    Returns None for missing or empty files. A file that exists but cannot be
    read or parsed raises StorageUnavailable.
    """
    if not path.exists():
        return None
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise StorageUnavailable(f"Cannot read {path}: {e}") from e
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise StorageUnavailable(f"Corrupt JSON in {path}: {e}") from e


def atomic_write_json(path: Path, payload: Any, *, indent: int = 2, sort_keys: bool = False) -> None:
    """
    Atomically write JSON to disk by writing to a temp file then replacing.
    """
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=indent, sort_keys=sort_keys, ensure_ascii=False)
            f.write("\n")
        tmp_path.replace(path)
    except OSError as e:
        raise StorageUnavailable(f"Cannot write {path}: {e}") from e
