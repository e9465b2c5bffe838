from datetime import datetime

from tasktracker import models
from tasktracker.database import Base


def _task_count(app) -> int:
    db = app.state.session_factory()
    try:
        return db.query(models.Task).count()
    finally:
        db.close()


def _create(client, headers, **body):
    body.setdefault("title", "Write report")
    resp = client.post("/api/tasks", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["task"]


def test_list_tasks_requires_token(client):
    assert client.get("/api/tasks").status_code == 401


def test_create_task_defaults(client, writer):
    task = _create(client, writer["headers"], description="Q3 numbers")
    assert task["status"] == "open"
    assert task["description"] == "Q3 numbers"
    assert task["assigned_to"] is None
    assert task["created_by"]["username"] == "wendy"
    assert task["created_by_id"] == writer["id"]
    assert task["created_at"] == task["updated_at"]


def test_creator_comes_from_session(client, writer, admin_headers):
    task = _create(client, writer["headers"], created_by=1, created_by_id=1, createdBy=1)
    assert task["created_by_id"] == writer["id"]


def test_create_task_with_assignee(client, writer, reader):
    task = _create(client, writer["headers"], assigned_to=reader["id"])
    assert task["assigned_to"] == {"id": reader["id"], "username": "rita", "email": "rita@tasks.io"}


def test_create_task_with_unknown_assignee(client, writer, app):
    resp = client.post("/api/tasks", json={"title": "T", "assigned_to": 999}, headers=writer["headers"])
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Assigned user not found"}
    assert _task_count(app) == 0


def test_create_task_requires_title(client, writer):
    assert client.post("/api/tasks", json={"description": "x"}, headers=writer["headers"]).status_code == 422
    assert client.post("/api/tasks", json={"title": ""}, headers=writer["headers"]).status_code == 422


def test_reader_cannot_mutate_tasks(client, writer, reader, app):
    task = _create(client, writer["headers"])
    headers = reader["headers"]

    created = client.post("/api/tasks", json={"title": "Nope"}, headers=headers)
    updated = client.put(f"/api/tasks/{task['id']}", json={"title": "Changed"}, headers=headers)
    deleted = client.delete(f"/api/tasks/{task['id']}", headers=headers)

    for resp in (created, updated, deleted):
        assert resp.status_code == 403
        assert resp.json() == {"detail": "Write permission required"}
    assert _task_count(app) == 1
    tasks = client.get("/api/tasks", headers=headers).json()
    assert tasks[0]["title"] == "Write report"


def test_reader_can_list_tasks(client, writer, reader):
    _create(client, writer["headers"], title="A")
    _create(client, writer["headers"], title="B")
    resp = client.get("/api/tasks", headers=reader["headers"])
    assert resp.status_code == 200
    assert [t["title"] for t in resp.json()] == ["A", "B"]


def test_update_task_fields(client, writer, reader, app):
    task = _create(client, writer["headers"], description="draft")
    db = app.state.session_factory()
    try:
        stored = db.query(models.Task).filter(models.Task.id == task["id"]).one()
        stored.updated_at = datetime(2020, 1, 1)
        db.commit()
    finally:
        db.close()

    resp = client.put(
        f"/api/tasks/{task['id']}",
        json={"status": "in progress", "assigned_to": reader["id"]},
        headers=writer["headers"],
    )
    assert resp.status_code == 200
    updated = resp.json()["task"]
    assert updated["status"] == "in progress"
    assert updated["title"] == "Write report"
    assert updated["description"] == "draft"
    assert updated["assigned_to"]["id"] == reader["id"]
    assert updated["updated_at"] > "2020-01-01T00:00:00"
    assert updated["created_at"] == task["created_at"]


def test_update_task_unassign(client, writer, reader):
    task = _create(client, writer["headers"], assigned_to=reader["id"])
    resp = client.put(f"/api/tasks/{task['id']}", json={"assigned_to": None}, headers=writer["headers"])
    assert resp.json()["task"]["assigned_to"] is None


def test_update_task_rejects_unknown_status(client, writer):
    task = _create(client, writer["headers"])
    resp = client.put(f"/api/tasks/{task['id']}", json={"status": "blocked"}, headers=writer["headers"])
    assert resp.status_code == 422


def test_any_writer_may_edit_any_task(client, writer, admin_headers):
    task = _create(client, admin_headers)
    resp = client.put(f"/api/tasks/{task['id']}", json={"status": "done"}, headers=writer["headers"])
    assert resp.status_code == 200
    assert resp.json()["task"]["status"] == "done"


def test_update_missing_task_creates_nothing(client, writer, app):
    resp = client.put("/api/tasks/42", json={"title": "Ghost"}, headers=writer["headers"])
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Task not found"}
    assert _task_count(app) == 0


def test_delete_task(client, writer):
    task = _create(client, writer["headers"])
    resp = client.delete(f"/api/tasks/{task['id']}", headers=writer["headers"])
    assert resp.status_code == 200
    assert resp.json() == {"message": "Task deleted successfully"}
    assert client.get("/api/tasks", headers=writer["headers"]).json() == []
    assert client.delete(f"/api/tasks/{task['id']}", headers=writer["headers"]).status_code == 404


def test_deleting_account_clears_assignee_and_keeps_creator_id(client, writer, reader, admin_headers):
    task = _create(client, writer["headers"], assigned_to=reader["id"])
    client.delete(f"/api/admin/users/{reader['id']}", headers=admin_headers)
    client.delete(f"/api/admin/users/{writer['id']}", headers=admin_headers)

    listed = client.get("/api/tasks", headers=admin_headers).json()
    assert len(listed) == 1
    assert listed[0]["id"] == task["id"]
    assert listed[0]["assigned_to"] is None
    assert listed[0]["created_by"] is None
    assert listed[0]["created_by_id"] == writer["id"]


def test_store_failure_is_a_generic_server_error(client, app, writer):
    Base.metadata.drop_all(bind=app.state.engine)
    resp = client.get("/api/tasks", headers=writer["headers"])
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Server error"}


def test_update_missing_task_checks_task_before_assignee(client, writer):
    resp = client.put("/api/tasks/999", json={"assigned_to": 999}, headers=writer["headers"])
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Task not found"}


def test_token_of_deleted_account_cannot_create_task(client, writer, admin_headers, app):
    assert client.delete(f"/api/admin/users/{writer['id']}", headers=admin_headers).status_code == 200
    resp = client.post("/api/tasks", json={"title": "Orphan"}, headers=writer["headers"])
    assert resp.status_code == 404
    assert resp.json() == {"detail": "User not found"}
    assert _task_count(app) == 0
