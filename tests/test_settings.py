from __future__ import annotations

from pathlib import Path

import pytest

from localdb.errors import ConfigurationError
from localdb.facade import LocalClient, create_client, get_client
from localdb.settings import Settings, get_settings


def test_defaults(monkeypatch):
    for name in ("DATABASE_local", "DATABASE_LOCAL", "LOCAL_DB_DIR", "DATABASE_URL", "DEBUG_LOG_QUERIES"):
        monkeypatch.delenv(name, raising=False)
    s = get_settings()
    assert s.use_local_db is False
    assert s.local_db_dir == Path.cwd() / ".local-db"
    assert s.database_url == ""
    assert s.debug_log_queries is False


@pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("YES", True), ("false", False), ("", False)])
def test_local_switch_parsing(monkeypatch, raw, expected):
    monkeypatch.delenv("DATABASE_LOCAL", raising=False)
    monkeypatch.setenv("DATABASE_local", raw)
    assert get_settings().use_local_db is expected


def test_original_spelling_wins(monkeypatch):
    monkeypatch.setenv("DATABASE_local", "false")
    monkeypatch.setenv("DATABASE_LOCAL", "true")
    assert get_settings().use_local_db is False


def test_create_client_local(tmp_path):
    settings = Settings(use_local_db=True, local_db_dir=tmp_path / "db", database_url="", debug_log_queries=True)
    client = create_client(settings)
    assert isinstance(client, LocalClient)
    assert (tmp_path / "db" / "users.json").exists()


def test_create_client_remote_needs_factory(tmp_path):
    settings = Settings(use_local_db=False, local_db_dir=tmp_path, database_url="mongodb://x", debug_log_queries=False)
    with pytest.raises(ConfigurationError):
        create_client(settings)


def test_create_client_remote_uses_factory(tmp_path):
    settings = Settings(use_local_db=False, local_db_dir=tmp_path, database_url="mongodb://x", debug_log_queries=False)
    seen = []

    class FakeRemote:
        def disconnect(self):
            pass

    def factory(s):
        seen.append(s.database_url)
        return FakeRemote()

    assert isinstance(create_client(settings, remote_factory=factory), FakeRemote)
    assert seen == ["mongodb://x"]


def test_get_client_reads_switch_once(sandbox_env, monkeypatch):
    first = get_client()
    assert isinstance(first, LocalClient)
    assert first.database.db_dir == sandbox_env

    # flipping the environment later has no effect on the process-wide client
    monkeypatch.setenv("DATABASE_local", "false")
    assert get_client() is first
