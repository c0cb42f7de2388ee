"""Runtime settings sourced from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///:memory:"
DEFAULT_PER_PAGE = 15


@dataclass(frozen=True)
class RepositorySettings:
    database_url: str = DEFAULT_DATABASE_URL
    echo_sql: bool = False
    default_per_page: int = DEFAULT_PER_PAGE
    throw_exceptions: bool = False
    deep_save: bool = False
    log_level: str = "INFO"


_ENABLED = frozenset({"1", "true", "yes", "on"})
_DISABLED = frozenset({"", "0", "false", "no", "off"})


def _env_flag(name: str, default: bool = False) -> bool:
    """Read ``name`` as an on/off switch; unrecognised words keep ``default``."""
    raw = os.getenv(name)
    if raw is None:
        return default
    word = raw.strip().lower()
    if word in _ENABLED:
        return True
    if word in _DISABLED:
        return False
    return default


def _env_positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        parsed = int(raw.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _database_url() -> str:
    # Explicit package setting wins over the generic DATABASE_URL
    return os.getenv("REPOKIT_DATABASE_URL") or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


@lru_cache(maxsize=None)
def get_settings() -> RepositorySettings:
    """Return the cached settings built from the environment."""
    return RepositorySettings(
        database_url=_database_url(),
        echo_sql=_env_flag("REPOKIT_SQL_ECHO"),
        default_per_page=_env_positive_int("REPOKIT_PER_PAGE", DEFAULT_PER_PAGE),
        throw_exceptions=_env_flag("REPOKIT_THROW_EXCEPTIONS"),
        deep_save=_env_flag("REPOKIT_DEEP_SAVE"),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )


def refresh_settings_cache() -> None:
    """Invalidate cached settings (useful for tests)."""
    get_settings.cache_clear()


def configure_logging(level: Optional[str] = None) -> None:
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO))
