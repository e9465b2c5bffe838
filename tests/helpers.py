from fastapi.testclient import TestClient


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login(client: TestClient, username: str, password: str) -> str:
    resp = client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


def register(client: TestClient, username: str, email: str, password: str, **extra):
    return client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password, **extra},
    )
