from __future__ import annotations

from fastapi.testclient import TestClient


def test_token_success(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/auth/token",
        data={"username": "admin", "password": "password"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 60 * 60
    assert isinstance(body["access_token"], str) and body["access_token"]
    assert resp.headers["cache-control"] == "no-store"


def test_token_wrong_password(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/auth/token",
        data={"username": "admin", "password": "wrong"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert resp.status_code == 401


def test_me_returns_scopes(client: TestClient, auth_headers: dict[str, str]) -> None:
    resp = client.get("/api/v1/auth/me", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"username": "admin", "scopes": ["weather:read"]}


def test_garbage_token_is_rejected(client: TestClient) -> None:
    resp = client.get(
        "/api/v1/weather/London", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"].startswith("Bearer")
