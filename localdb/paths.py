from __future__ import annotations

from pathlib import Path

DEFAULT_DB_DIRNAME = ".local-db"


def default_db_dir() -> Path:
    return Path.cwd() / DEFAULT_DB_DIRNAME


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def collection_path(db_dir: Path, file_name: str) -> Path:
    # "users" and "users.json" both resolve to <db_dir>/users.json
    name = file_name if file_name.endswith(".json") else f"{file_name}.json"
    return db_dir / name
