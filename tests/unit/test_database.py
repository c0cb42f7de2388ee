from unittest.mock import patch

from sqlalchemy import text
from sqlalchemy.pool import StaticPool

import repokit.db.database as dbmod
from repokit.config import refresh_settings_cache


def test_engine_kwargs_for_memory_sqlite():
    kwargs = dbmod._engine_kwargs("sqlite+pysqlite:///:memory:")
    assert kwargs["poolclass"] is StaticPool
    assert kwargs["connect_args"] == {"check_same_thread": False}
    assert dbmod._engine_kwargs("sqlite://")["poolclass"] is StaticPool


def test_engine_kwargs_for_file_sqlite_and_postgres():
    assert "poolclass" not in dbmod._engine_kwargs("sqlite:///data.db")
    assert dbmod._engine_kwargs("postgresql://u:p@localhost/db") == {}


def test_build_engine_uses_settings(monkeypatch):
    monkeypatch.setenv("REPOKIT_DATABASE_URL", "postgresql://u:p@db/app")
    monkeypatch.setenv("REPOKIT_SQL_ECHO", "true")
    refresh_settings_cache()
    with patch("repokit.db.database.create_engine") as mock_create_engine:
        dbmod.build_engine()
    mock_create_engine.assert_called_once_with("postgresql://u:p@db/app", echo=True)


def test_default_engine_is_shared_until_reset():
    first = dbmod.get_engine()
    assert dbmod.get_engine() is first
    dbmod.reset_engine()
    assert dbmod.get_engine() is not first


def test_session_helpers_close_sessions():
    gen = dbmod.get_session()
    db = next(gen)
    assert db.execute(text("SELECT 1")).scalar() == 1
    with patch.object(db, "close") as close:
        try:
            next(gen)
        except StopIteration:
            pass
    close.assert_called_once()

    with dbmod.session_scope() as scoped:
        assert scoped.execute(text("SELECT 2")).scalar() == 2
