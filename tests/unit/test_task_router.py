"""Tests for the task HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient

from src.core.config import Settings
from src.main import create_app
from src.modules.tasks.container import build_container


ALICE = {"X-User-Id": "user_alice", "X-User-Name": "Alice", "X-User-Role": "member"}
BOB = {"X-User-Id": "user_bob", "X-User-Name": "Bob", "X-User-Role": "admin"}


@pytest.fixture
def client(patched_db, clock) -> TestClient:
    """Test client over the real engine wired to the in-memory database."""
    container = build_container(Settings(_env_file=None), clock=clock)
    with TestClient(create_app(container)) as test_client:
        yield test_client


def _create(client: TestClient) -> dict:
    response = client.post(
        "/tasks",
        headers=BOB,
        json={
            "title": "Calibrate scale",
            "project_id": "proj_1",
            "assigned_to": "user_alice",
            "difficulty_level": 2,
            "actions": [
                {"id": "a1", "title": "Zero the scale", "required": True},
                {"id": "a2", "title": "Reading", "type": "number"},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.unit
def test_health_endpoint_returns_healthy(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.unit
def test_full_approval_flow(client: TestClient, patched_db) -> None:
    """Create, complete, submit and approve through the API."""
    task = _create(client)
    assert task["coins_reward"] == 20
    task_id = task["id"]

    response = client.post(
        f"/tasks/{task_id}/actions/a2/complete",
        headers=ALICE,
        json={"data": {"value": 5.2, "unit": "kg"}},
    )
    assert response.status_code == 200
    assert response.json()["actions"][1]["data"] == {"value": 5.2, "unit": "kg"}

    response = client.post(f"/tasks/{task_id}/status", headers=ALICE, json={"status": "waiting_approval"})
    assert response.status_code == 409
    assert response.json()["code"] == "ERR_GUARD_NOT_SATISFIED"

    client.post(f"/tasks/{task_id}/actions/a1/complete", headers=ALICE)
    response = client.post(f"/tasks/{task_id}/status", headers=ALICE, json={"status": "waiting_approval"})
    assert response.status_code == 200
    submission_id = response.json()["pending_approval_announcement_id"]
    assert submission_id

    response = client.post(f"/tasks/{task_id}/status", headers=BOB, json={"status": "completed"})
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    messages = patched_db.records("project_messages")
    assert [m["message_type"] for m in messages] == ["task_submission", "task_approval"]
    assert messages[-1]["original_message_id"] == submission_id
    assert {n["type"] for n in patched_db.records("notifications")} >= {"task_assigned", "task_approved"}


@pytest.mark.unit
def test_error_mapping(client: TestClient) -> None:
    task_id = _create(client)["id"]

    assert client.get("/tasks/9999").status_code == 404
    assert client.post(f"/tasks/{task_id}/actions/zzz/complete", headers=ALICE).status_code == 404

    response = client.post(f"/tasks/{task_id}/actions/a1/complete", headers=ALICE, json={"data": {"colour": "red"}})
    assert response.status_code == 422
    assert response.json()["code"] == "ERR_INVALID_ACTION_DATA"

    response = client.delete(f"/tasks/{task_id}", headers=ALICE)
    assert response.status_code == 403
    assert response.json()["code"] == "ERR_PERMISSION_DENIED"


@pytest.mark.unit
def test_missing_actor_header(client: TestClient) -> None:
    response = client.post("/tasks/1/actions/a1/complete")

    assert response.status_code == 422


@pytest.mark.unit
def test_list_update_comment_delete(client: TestClient) -> None:
    task_id = _create(client)["id"]
    _create(client)

    response = client.get("/tasks", params={"project_id": "proj_1", "status": "pending", "limit": 1})
    body = response.json()
    assert response.status_code == 200
    assert body["total_count"] == 2
    assert body["total_pages"] == 2
    assert len(body["items"]) == 1

    response = client.patch(f"/tasks/{task_id}", headers=BOB, json={"priority": "high"})
    assert response.json()["priority"] == "high"
    assert client.patch(f"/tasks/{task_id}", headers=BOB, json={"status": "completed"}).status_code == 422

    response = client.post(f"/tasks/{task_id}/comments", headers=ALICE, json={"text": "On it"})
    assert response.status_code == 201
    assert response.json()["comments"][0]["author_id"] == "user_alice"
    assert client.post(f"/tasks/{task_id}/comments", headers=ALICE, json={"text": " "}).status_code == 422

    assert client.delete(f"/tasks/{task_id}", headers=BOB).status_code == 204
    assert client.get(f"/tasks/{task_id}").status_code == 404


@pytest.mark.unit
@pytest.mark.parametrize("field", ["title", "description", "assigned_to", "priority", "attachments", "subtasks"])
def test_update_rejects_null_for_required_fields(client: TestClient, patched_db, field: str) -> None:
    task = _create(client)

    response = client.patch(f"/tasks/{task['id']}", headers=BOB, json={field: None})

    assert response.status_code == 422
    assert patched_db.records("tasks")[0]["version"] == task["version"]
