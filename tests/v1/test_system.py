# mypy: ignore-errors
"""Tests for system endpoints."""

from unittest.mock import AsyncMock, patch

from fastapi import status
from fastapi.testclient import TestClient

from campfire_stage.services.self_destruct import SelfDestructService, SweepError


def test_system_config(client: TestClient) -> None:
    """Test system configuration endpoint."""
    r = client.get("/api/v1/system/config")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert "app" in data and "sweep" in data and "store" in data
    assert data["sweep"]["enabled"] is False
    assert "secret_key" not in str(data)


def test_manual_sweep(client: TestClient, alice: dict[str, str]) -> None:
    """Test that a manual sweep destroys only groups whose rule triggered."""
    doomed = client.post(
        "/api/v1/groups/",
        json={"name": "Doomed", "self_destruct_rule": {"duration_minutes": 0}},
        headers=alice,
    ).json()
    kept = client.post(
        "/api/v1/groups/",
        json={"name": "Kept", "self_destruct_rule": {"duration_minutes": 60}},
        headers=alice,
    ).json()

    r = client.post("/api/v1/system/sweep", headers=alice)
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"destroyed": [doomed["id"]]}

    listed = client.get("/api/v1/groups/", headers=alice).json()
    assert [g["id"] for g in listed] == [kept["id"]]


def test_manual_sweep_requires_auth(client: TestClient) -> None:
    """Test that anonymous callers cannot trigger a sweep."""
    r = client.post("/api/v1/system/sweep")
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_manual_sweep_store_failure(client: TestClient, alice: dict[str, str]) -> None:
    """Test that a sweep that cannot list groups maps to 503."""
    with patch.object(
        SelfDestructService, "sweep_all", AsyncMock(side_effect=SweepError("down"))
    ):
        r = client.post("/api/v1/system/sweep", headers=alice)
    assert r.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert r.json()["detail"] == "Storage temporarily unavailable"
