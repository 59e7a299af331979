import pytest
from fastapi.testclient import TestClient

import main
from losthub.models.items import ItemStatus
from losthub.services import item_workflow


@pytest.fixture
def client():
    return TestClient(main.app)


def test_root_lists_routes(client):
    res = client.get("/")
    assert res.status_code == 200
    assert "/admin/items/{item_id}/approve" in res.json()["routes"]


def test_approve_reports_match_flag(client, monkeypatch):
    async def fake_approve(item_id):
        return {"success": True, "isMatchFound": True, "matchCount": 2}
    monkeypatch.setattr(item_workflow, "approve_item", fake_approve)

    res = client.post("/admin/items/abc/approve")
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["isMatchFound"] is True


@pytest.mark.parametrize("exc,status", [(LookupError("item_not_found"), 404), (RuntimeError("db down"), 500)])
def test_approve_errors(client, monkeypatch, exc, status):
    async def fake_approve(item_id):
        raise exc
    monkeypatch.setattr(item_workflow, "approve_item", fake_approve)
    assert client.post("/admin/items/abc/approve").status_code == status


def test_create_item_form(client, monkeypatch):
    captured = {}

    async def fake_create(fields, poster_uid, image=None):
        captured.update(fields=fields, poster=poster_uid, image=image)
        return "new-id"
    monkeypatch.setattr(item_workflow, "create_item", fake_create)

    res = client.post("/items", data={
        "name": "Keys",
        "description": "Three keys on a red ring",
        "category": "keys",
        "status": "lost",
        "lastSeenLocation": "Gym",
        "posterUid": "u1",
    })
    assert res.status_code == 201
    assert res.json() == {"success": True, "message": "lost item successfully posted for approval.", "itemId": "new-id"}
    assert captured["poster"] == "u1"
    assert captured["image"] is None


def test_create_item_validation_error(client, monkeypatch):
    async def fake_create(fields, poster_uid, image=None):
        raise ValueError("invalid_status")
    monkeypatch.setattr(item_workflow, "create_item", fake_create)
    res = client.post("/items", data={
        "name": "Keys", "description": "d", "category": "c",
        "status": "stolen", "lastSeenLocation": "Gym", "posterUid": "u1",
    })
    assert res.status_code == 400
    assert res.json()["detail"] == "invalid_status"


def test_matches_endpoint(client, monkeypatch):
    async def fake_find(item_id):
        return ItemStatus.FOUND, [{"id": "f1", "score": 0.93, "name": "Keys"}]
    monkeypatch.setattr(item_workflow, "find_item_matches", fake_find)

    body = client.get("/items/l1/matches").json()
    assert body["queryId"] == "l1"
    assert body["targetStatus"] == "found"
    assert body["matches"] == [{"id": "f1", "score": 0.93, "name": "Keys"}]


def test_delete_and_reembed_endpoints(client, monkeypatch):
    async def fake_delete(item_id):
        return True

    async def fake_reembed(item_id):
        return None
    monkeypatch.setattr(item_workflow, "delete_item", fake_delete)
    monkeypatch.setattr(item_workflow, "reembed_item", fake_reembed)

    assert client.delete("/admin/items/x").json()["success"] is True
    assert client.post("/admin/items/x/reembed").status_code == 502


def test_approve_invalid_status_is_unprocessable(client, monkeypatch):
    async def fake_approve(item_id):
        raise ValueError("invalid_status")
    monkeypatch.setattr(item_workflow, "approve_item", fake_approve)
    res = client.post("/admin/items/abc/approve")
    assert res.status_code == 422
    assert res.json()["detail"] == "invalid_status"


def test_reembed_repository_failure_is_reported(client, monkeypatch):
    async def broken_item(item_id):
        raise RuntimeError("firestore unavailable")

    async def broken_batch(limit=None):
        raise RuntimeError("firestore unavailable")
    monkeypatch.setattr(item_workflow, "reembed_item", broken_item)
    monkeypatch.setattr(item_workflow, "reembed_missing", broken_batch)

    res = client.post("/admin/items/x/reembed")
    assert res.status_code == 500
    assert res.json()["detail"] == "reembed_error"
    res = client.post("/admin/reembed")
    assert res.status_code == 500
    assert res.json()["detail"] == "reembed_error"


@pytest.mark.parametrize("limit", [0, -3])
def test_reembed_batch_rejects_non_positive_limit(client, monkeypatch, limit):
    async def must_not_run(limit=None):
        raise AssertionError("validation should reject the request first")
    monkeypatch.setattr(item_workflow, "reembed_missing", must_not_run)
    assert client.post(f"/admin/reembed?limit={limit}").status_code == 422
