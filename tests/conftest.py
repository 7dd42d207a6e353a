# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["SWEEP_ENABLED"] = "false"

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from campfire_stage.core.security import create_access_token
from campfire_stage.db.session import Base
from campfire_stage.db.session import get_db as app_get_session
from campfire_stage.db.time import MILLIS_PER_MINUTE
from campfire_stage.main import app as fastapi_app
from campfire_stage.services.store import GROUPS, MESSAGES
from tests.fakes import InMemoryDocumentStore

TEST_DB_URL = "sqlite://"

# Fixed "now" used by engine tests: 2026-01-01T00:00:00Z in epoch millis.
NOW = 1_767_225_600_000


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def auth_headers() -> Callable[[str, str], dict[str, str]]:
    """Return a factory building bearer headers for a user id."""

    def _headers(user_id: str, display_name: str = "") -> dict[str, str]:
        token = create_access_token(user_id, display_name or user_id.title())
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def alice(auth_headers: Callable[..., dict[str, str]]) -> dict[str, str]:
    """Authorization headers for the primary test user."""
    return auth_headers("alice", "Alice")


@pytest.fixture()
def bob(auth_headers: Callable[..., dict[str, str]]) -> dict[str, str]:
    """Authorization headers for a second test user."""
    return auth_headers("bob", "Bob")


@pytest.fixture()
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


def minutes(value: float) -> int:
    """Convert minutes to milliseconds."""
    return int(value * MILLIS_PER_MINUTE)


def make_group(
    store: InMemoryDocumentStore,
    *,
    created_at: int = NOW,
    last_activity: int | None = None,
    is_active: bool = True,
    purge_pending: bool = False,
    messages: int = 0,
    **rule: Any,
) -> str:
    """Insert a group plus ``messages`` messages straight into the fake store."""
    group_id = store.put(
        GROUPS,
        {
            "name": "test group",
            "description": "",
            "created_by": "alice",
            "member_ids": ["alice"],
            "created_at": created_at,
            "last_activity": last_activity if last_activity is not None else created_at,
            "message_count": messages,
            "max_messages": rule.get("max_messages"),
            "duration_minutes": rule.get("duration_minutes"),
            "inactivity_timeout_minutes": rule.get("inactivity_timeout_minutes"),
            "is_active": is_active,
            "purge_pending": purge_pending,
        },
    )
    for index in range(messages):
        store.put(
            MESSAGES,
            {
                "group_id": group_id,
                "sender_id": "alice",
                "sender_name": "Alice",
                "content": f"message {index}",
                "timestamp": created_at + index,
                "is_edited": False,
                "edited_at": None,
            },
        )
    return group_id
