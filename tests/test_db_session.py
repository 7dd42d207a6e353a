# tests/test_db_session.py
"""Tests for engine options and the script session scope."""

import pytest
from sqlalchemy.pool import StaticPool

from campfire_stage.db.session import engine_options, session_scope


@pytest.mark.parametrize("url", ["sqlite://", "sqlite:///:memory:"])
def test_in_memory_sqlite_shares_one_connection(url: str) -> None:
    options = engine_options(url)
    assert options["poolclass"] is StaticPool
    assert options["connect_args"] == {"check_same_thread": False}


def test_file_sqlite_uses_default_pool() -> None:
    options = engine_options("sqlite:///./campfire.db")
    assert "poolclass" not in options
    assert options["connect_args"] == {"check_same_thread": False}


def test_server_databases_ping_connections() -> None:
    assert engine_options("postgresql+psycopg://u:p@db/campfire") == {"pool_pre_ping": True}


def test_session_scope_rolls_back_on_error(mocker) -> None:
    factory = mocker.patch("campfire_stage.db.session.SessionLocal")
    session = factory.return_value

    with pytest.raises(RuntimeError):
        with session_scope() as db:
            assert db is session
            raise RuntimeError("boom")

    session.rollback.assert_called_once()
    session.close.assert_called_once()


def test_session_scope_closes_on_success(mocker) -> None:
    factory = mocker.patch("campfire_stage.db.session.SessionLocal")

    with session_scope():
        pass

    factory.return_value.rollback.assert_not_called()
    factory.return_value.close.assert_called_once()
