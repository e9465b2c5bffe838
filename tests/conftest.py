from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tasktracker.config import Settings
from tasktracker.main import create_app

from .helpers import auth_header, login, register

ADMIN_PASSWORD = "admin123"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file, independent of the process environment."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'tasks.db'}",
        secret_key="test-secret",
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture()
def app(settings: Settings):
    app = create_app(settings)
    yield app
    app.state.engine.dispose()


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def admin_headers(client: TestClient) -> dict:
    return auth_header(login(client, "admin", ADMIN_PASSWORD))


@pytest.fixture()
def writer(client: TestClient, admin_headers: dict) -> dict:
    """A write-permitted regular account, with its id and auth headers."""
    resp = client.post(
        "/api/admin/users",
        json={"username": "wendy", "email": "wendy@tasks.io", "password": "pw", "permissions": "write"},
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    user = resp.json()["user"]
    return {"id": user["id"], "headers": auth_header(login(client, "wendy", "pw"))}


@pytest.fixture()
def reader(client: TestClient) -> dict:
    resp = register(client, "rita", "rita@tasks.io", "pw")
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {"id": body["user"]["id"], "headers": auth_header(body["token"])}
