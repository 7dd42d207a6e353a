"""Engine and session wiring for the groups and messages tables."""

from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from campfire_stage.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the Campfire models."""


# Registers Group and Message on Base.metadata.
import campfire_stage.models  # noqa: E402,F401


def engine_options(url: str) -> dict[str, Any]:
    """Return ``create_engine`` keyword arguments suited to ``url``'s backend.

    SQLite connections are shared across the sweep task and request threads,
    and an in-memory SQLite database only exists on a single connection.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}

    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    return options


def build_engine(url: str | None = None) -> Engine:
    resolved = url or settings.effective_database_url
    return create_engine(resolved, echo=settings.sql_debug, **engine_options(resolved))


engine = build_engine()

SessionLocal = sessionmaker(bind=engine, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""
    with SessionLocal() as db:
        yield db


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for scripts; rolled back if the block raises."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def create_tables() -> None:
    """Create any missing tables without going through Alembic."""
    Base.metadata.create_all(bind=engine)
