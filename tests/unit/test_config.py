import logging

import pytest

from repokit import config
from repokit.config import (
    DEFAULT_DATABASE_URL,
    RepositorySettings,
    configure_logging,
    get_settings,
    refresh_settings_cache,
)


def test_defaults():
    assert get_settings() == RepositorySettings()
    assert get_settings().database_url == DEFAULT_DATABASE_URL


def test_database_url_precedence(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://generic/db")
    refresh_settings_cache()
    assert get_settings().database_url == "postgresql://generic/db"

    monkeypatch.setenv("REPOKIT_DATABASE_URL", "sqlite:///repo.db")
    refresh_settings_cache()
    assert get_settings().database_url == "sqlite:///repo.db"


@pytest.mark.parametrize(
    "env_name,field",
    [
        ("REPOKIT_SQL_ECHO", "echo_sql"),
        ("REPOKIT_THROW_EXCEPTIONS", "throw_exceptions"),
        ("REPOKIT_DEEP_SAVE", "deep_save"),
    ],
)
def test_boolean_flags_enabled_via_env(monkeypatch, env_name, field):
    monkeypatch.setenv(env_name, "yes")
    refresh_settings_cache()
    assert getattr(get_settings(), field) is True


@pytest.mark.parametrize("raw_value", ["maybe", "2", "junk"])
def test_invalid_boolean_falls_back_to_default(monkeypatch, raw_value):
    monkeypatch.setenv("REPOKIT_DEEP_SAVE", raw_value)
    refresh_settings_cache()
    assert get_settings().deep_save is False


@pytest.mark.parametrize("raw_value,expected", [("30", 30), ("abc", 15), ("0", 15), ("-4", 15)])
def test_per_page_parsing(monkeypatch, raw_value, expected):
    monkeypatch.setenv("REPOKIT_PER_PAGE", raw_value)
    refresh_settings_cache()
    assert get_settings().default_per_page == expected


def test_cache_is_stale_until_refreshed(monkeypatch):
    monkeypatch.setenv("REPOKIT_PER_PAGE", "20")
    refresh_settings_cache()
    assert get_settings().default_per_page == 20

    monkeypatch.setenv("REPOKIT_PER_PAGE", "40")
    assert get_settings().default_per_page == 20

    refresh_settings_cache()
    assert get_settings().default_per_page == 40


def test_configure_logging_uses_level(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setenv("LOG_LEVEL", "debug")
    refresh_settings_cache()

    configure_logging()
    configure_logging("warning")
    assert calls == [{"level": logging.DEBUG}, {"level": logging.WARNING}]


@pytest.mark.parametrize("raw_value,expected", [(" ON ", True), ("False", False), ("", False), ("sometimes", True)])
def test_flag_parsing_keeps_default_for_unknown_words(monkeypatch, raw_value, expected):
    monkeypatch.setenv("REPOKIT_THROW_EXCEPTIONS", raw_value)
    assert config._env_flag("REPOKIT_THROW_EXCEPTIONS", default=True) is expected
