from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .paths import default_db_dir


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Backend switch: local JSON files vs the remote client
    use_local_db: bool
    local_db_dir: Path

    # Remote connection string, handed to the remote client factory untouched
    database_url: str

    # Debug
    debug_log_queries: bool


def get_settings() -> Settings:
    # The original deployment spells it DATABASE_local.
    if os.getenv("DATABASE_local") is not None:
        use_local_db = _env_bool("DATABASE_local", False)
    else:
        use_local_db = _env_bool("DATABASE_LOCAL", False)

    raw_dir = os.getenv("LOCAL_DB_DIR", "").strip()
    local_db_dir = Path(raw_dir) if raw_dir else default_db_dir()

    database_url = os.getenv("DATABASE_URL", "")

    debug_log_queries = _env_bool("DEBUG_LOG_QUERIES", False)

    return Settings(
        use_local_db=use_local_db,
        local_db_dir=local_db_dir,
        database_url=database_url,
        debug_log_queries=debug_log_queries,
    )
