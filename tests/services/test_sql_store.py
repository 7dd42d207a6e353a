"""Tests for the SQLAlchemy-backed document store."""

import asyncio
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from campfire_stage.services.self_destruct import SelfDestructService
from campfire_stage.services.sql_store import SqlDocumentStore
from campfire_stage.services.store import (
    GROUPS,
    MESSAGES,
    ArrayContains,
    ArrayRemove,
    ArrayUnion,
    BatchWriteError,
    DocumentNotFoundError,
    Increment,
    StoreUnavailableError,
)
from tests.conftest import NOW, minutes


def group_document(**overrides):
    document = {
        "name": "Campfire",
        "description": "",
        "created_by": "alice",
        "member_ids": ["alice"],
        "created_at": NOW,
        "last_activity": NOW,
        "message_count": 0,
        "max_messages": None,
        "duration_minutes": None,
        "inactivity_timeout_minutes": None,
        "is_active": True,
    }
    document.update(overrides)
    return document


def message_document(group_id: str, timestamp: int, content: str = "hi"):
    return {
        "group_id": group_id,
        "sender_id": "alice",
        "sender_name": "Alice",
        "content": content,
        "timestamp": timestamp,
        "is_edited": False,
        "edited_at": None,
    }


@pytest.fixture()
def store(db_session) -> SqlDocumentStore:
    return SqlDocumentStore(db_session, poll_interval=0.01)


@pytest.mark.asyncio
async def test_create_assigns_opaque_id(store) -> None:
    group_id = await store.create(GROUPS, group_document())

    assert isinstance(group_id, str)
    assert len(group_id) == 20
    fetched = await store.get_by_id(GROUPS, group_id)
    assert fetched["name"] == "Campfire"
    assert fetched["member_ids"] == ["alice"]
    assert fetched["id"] == group_id


@pytest.mark.asyncio
async def test_get_by_id_missing_returns_none(store) -> None:
    assert await store.get_by_id(GROUPS, "missing") is None


@pytest.mark.asyncio
async def test_query_filters_and_orders(store) -> None:
    group_id = await store.create(GROUPS, group_document())
    other_id = await store.create(GROUPS, group_document())
    for ts in (NOW + 2, NOW, NOW + 1):
        await store.create(MESSAGES, message_document(group_id, ts, content=str(ts)))
    await store.create(MESSAGES, message_document(other_id, NOW))

    ascending = await store.query(MESSAGES, {"group_id": group_id}, order_by="timestamp")
    descending = await store.query(MESSAGES, {"group_id": group_id}, order_by="-timestamp")

    assert [m["timestamp"] for m in ascending] == [NOW, NOW + 1, NOW + 2]
    assert [m["timestamp"] for m in descending] == [NOW + 2, NOW + 1, NOW]
    assert await store.count(MESSAGES, {"group_id": group_id}) == 3
    assert await store.count(MESSAGES) == 4


@pytest.mark.asyncio
async def test_array_contains_filter(store) -> None:
    shared = await store.create(GROUPS, group_document(member_ids=["alice", "bob"]))
    await store.create(GROUPS, group_document(member_ids=["alice"]))
    await store.create(GROUPS, group_document(member_ids=["bob"], is_active=False))

    bobs = await store.query(GROUPS, {"member_ids": ArrayContains("bob"), "is_active": True})

    assert [g["id"] for g in bobs] == [shared]
    assert await store.count(GROUPS, {"member_ids": ArrayContains("bob")}) == 2


@pytest.mark.asyncio
async def test_update_operators(store) -> None:
    group_id = await store.create(GROUPS, group_document())

    await store.update(
        GROUPS,
        group_id,
        {
            "message_count": Increment(2),
            "member_ids": ArrayUnion("bob", "alice"),
            "last_activity": NOW + minutes(1),
        },
    )
    await store.update(GROUPS, group_id, {"message_count": Increment()})
    updated = await store.get_by_id(GROUPS, group_id)

    assert updated["message_count"] == 3
    assert updated["member_ids"] == ["alice", "bob"]
    assert updated["last_activity"] == NOW + minutes(1)

    await store.update(GROUPS, group_id, {"member_ids": ArrayRemove("alice")})
    assert (await store.get_by_id(GROUPS, group_id))["member_ids"] == ["bob"]


@pytest.mark.asyncio
async def test_update_missing_document_raises(store) -> None:
    with pytest.raises(DocumentNotFoundError):
        await store.update(GROUPS, "missing", {"is_active": False})


@pytest.mark.asyncio
async def test_delete_is_idempotent(store) -> None:
    group_id = await store.create(GROUPS, group_document())

    await store.delete(GROUPS, group_id)
    await store.delete(GROUPS, group_id)

    assert await store.get_by_id(GROUPS, group_id) is None


@pytest.mark.asyncio
async def test_batch_delete_removes_only_listed_ids(store) -> None:
    group_id = await store.create(GROUPS, group_document())
    ids = [await store.create(MESSAGES, message_document(group_id, NOW + i)) for i in range(3)]

    await store.batch_delete(MESSAGES, ids[:2])
    await store.batch_delete(MESSAGES, [])

    remaining = await store.query(MESSAGES, {"group_id": group_id})
    assert [m["id"] for m in remaining] == [ids[2]]


@pytest.mark.asyncio
async def test_unknown_collection_is_rejected(store) -> None:
    with pytest.raises(ValueError):
        await store.query("users")


@pytest.mark.asyncio
async def test_driver_errors_are_translated() -> None:
    session = MagicMock()
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("db down"))
    store = SqlDocumentStore(session)

    with pytest.raises(StoreUnavailableError):
        await store.query(GROUPS, {"is_active": True})
    with pytest.raises(BatchWriteError):
        await store.batch_delete(MESSAGES, ["a", "b"])
    assert session.rollback.call_count == 2


@pytest.mark.asyncio
async def test_subscribe_yields_on_change(store) -> None:
    group_id = await store.create(GROUPS, group_document())
    stream = store.subscribe(MESSAGES, {"group_id": group_id}, order_by="timestamp")

    first = await asyncio.wait_for(anext(stream), timeout=1)
    assert first == []

    await store.create(MESSAGES, message_document(group_id, NOW, content="hello"))
    second = await asyncio.wait_for(anext(stream), timeout=1)
    assert [m["content"] for m in second] == ["hello"]

    await stream.aclose()


@pytest.mark.asyncio
async def test_engine_runs_against_sql_store(store) -> None:
    doomed = await store.create(GROUPS, group_document(max_messages=2))
    kept = await store.create(GROUPS, group_document(max_messages=5))
    for group_id in (doomed, kept):
        for i in range(2):
            await store.create(MESSAGES, message_document(group_id, NOW + i))

    engine = SelfDestructService(store, clock=lambda: NOW, delete_batch_size=1)
    destroyed = await engine.sweep_all()

    assert destroyed == [doomed]
    assert (await store.get_by_id(GROUPS, doomed))["is_active"] is False
    assert (await store.get_by_id(GROUPS, doomed))["purge_pending"] is False
    assert await store.count(MESSAGES, {"group_id": doomed}) == 0
    assert (await store.get_by_id(GROUPS, kept))["is_active"] is True
    assert await store.count(MESSAGES, {"group_id": kept}) == 2
