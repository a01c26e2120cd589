from __future__ import annotations

from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for `import localdb` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def db_dir(tmp_path: Path) -> Path:
    return tmp_path / ".local-db"


@pytest.fixture
def client(db_dir: Path):
    """
    A local client on a temp directory so tests never touch a real ./.local-db.
    """
    from localdb.facade import LocalClient

    return LocalClient(db_dir)


@pytest.fixture
def sandbox_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Point the process-wide client at a temp directory in local mode, and drop
    the cached client before and after the test.
    """
    import localdb.facade as facade

    db = tmp_path / "env-db"
    monkeypatch.setenv("DATABASE_local", "true")
    monkeypatch.setenv("LOCAL_DB_DIR", str(db))
    monkeypatch.delenv("DATABASE_LOCAL", raising=False)
    monkeypatch.setattr(facade, "load_dotenv", lambda *a, **k: False)
    facade.reset_client()
    yield db
    facade.reset_client()
