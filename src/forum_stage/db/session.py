"""Engine and session factory for the forum database."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from forum_stage.core.settings import Settings, settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Model modules register their tables on Base.metadata at import time.
import forum_stage.models  # noqa: E402,F401


def engine_options(config: Settings) -> dict[str, Any]:
    """Return the ``create_engine`` keyword arguments for ``config``'s database.

    SQLite connections are shared across the request thread pool.
    """
    url = config.effective_database_url
    options: dict[str, Any] = {"echo": config.sql_debug}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_pre_ping"] = True
    return options


def build_engine(config: Settings) -> Engine:
    """Create the engine for ``config``'s effective database URL."""
    return create_engine(config.effective_database_url, **engine_options(config))


engine = build_engine(settings)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """Yield a read session for one request and close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
