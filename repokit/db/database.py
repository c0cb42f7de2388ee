"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration. In-memory SQLite
URLs get a StaticPool so every session sees the same database.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from repokit.config import get_settings


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs = {"connect_args": {"check_same_thread": False}}
    # "sqlite://" with no path is also an in-memory database
    if ":memory:" in url or url.split("://", 1)[-1] == "":
        kwargs["poolclass"] = StaticPool
    return kwargs


def build_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    settings = get_settings()
    url = url or settings.database_url
    echo = settings.echo_sql if echo is None else echo
    return create_engine(url, echo=echo, **_engine_kwargs(url))


_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """Return the process-wide default engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


def get_sessionmaker() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def reset_engine() -> None:
    """Dispose the default engine so the next call rebuilds it from settings."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_session() -> Iterator[Session]:
    """Yield a session and close it when the consumer is done."""
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()
