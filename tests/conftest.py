import pytest

from repokit.config import refresh_settings_cache
from repokit.db.database import reset_engine

_SETTINGS_ENV = [
    "REPOKIT_DATABASE_URL",
    "DATABASE_URL",
    "REPOKIT_SQL_ECHO",
    "REPOKIT_PER_PAGE",
    "REPOKIT_THROW_EXCEPTIONS",
    "REPOKIT_DEEP_SAVE",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    """Start every test from default settings and a fresh default engine."""
    for env_name in _SETTINGS_ENV:
        monkeypatch.delenv(env_name, raising=False)
    refresh_settings_cache()
    reset_engine()
    yield
    refresh_settings_cache()
    reset_engine()
