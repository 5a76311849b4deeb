"""
tests/test_users.py -- GET /api/auth/users, DELETE /api/auth/{id}, and the full flow.

Coverage:
  - Listing returns safe projections only
  - Delete: 200 {message, userID}; repeat delete is 400 not-found, not 500
  - Both routes require a session by default and open up when configured
  - Store failure on listing -> opaque 500
  - End-to-end: register -> login -> list -> delete -> delete again
"""

from __future__ import annotations

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from conftest import bearer, register_and_login
from core.config import get_settings


def test_list_users_safe_projection(api_client):
    user_id, token = register_and_login(api_client)
    resp = api_client.get("/api/auth/users", headers=bearer(token))
    assert resp.status_code == 200
    users = resp.json()
    assert len(users) == 1
    assert set(users[0]) == {"id", "name", "email", "createdAt"}
    assert users[0]["id"] == user_id
    assert "$2" not in resp.text


def test_delete_then_delete_again(api_client):
    user_id, token = register_and_login(api_client)
    first = api_client.delete(f"/api/auth/{user_id}", headers=bearer(token))
    assert first.status_code == 200
    assert first.json() == {"message": "User deleted successfully", "userID": user_id}

    second = api_client.delete(f"/api/auth/{user_id}", headers=bearer(token))
    assert second.status_code == 400
    assert second.json() == {"error": {"code": "not_found", "message": "User not found"}}


def test_routes_gated_by_default(api_client):
    user_id, _ = register_and_login(api_client)
    assert api_client.get("/api/auth/users").status_code == 401
    assert api_client.delete(f"/api/auth/{user_id}").status_code == 401
    assert api_client.app.state.user_store.get_by_id(user_id) is not None


def test_routes_open_when_gate_disabled(api_client, monkeypatch):
    monkeypatch.setattr(get_settings(), "user_routes_require_auth", False)
    user_id, _ = register_and_login(api_client)
    assert api_client.get("/api/auth/users").status_code == 200
    assert api_client.delete(f"/api/auth/{user_id}").status_code == 200
    assert api_client.delete(f"/api/auth/{user_id}").status_code == 400


def test_list_users_store_failure(api_client):
    _, token = register_and_login(api_client)
    boom = OperationalError("SELECT", {}, Exception("connection refused"))
    with patch.object(api_client.app.state.user_store, "list_users", side_effect=boom):
        resp = api_client.get("/api/auth/users", headers=bearer(token))
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "internal_error"
    assert "refused" not in resp.text


def test_end_to_end_scenario(api_client):
    reg = api_client.post("/api/auth/register", json={"name": "Al", "email": "a@b.com", "password": "secret1"})
    assert reg.status_code == 201
    user_id = reg.json()["userId"]

    login = api_client.post("/api/auth/login", json={"email": "a@b.com", "password": "secret1"})
    assert login.status_code == 200
    body = login.json()
    assert body["user"]["id"] == user_id
    assert body["user"]["name"] == "Al"
    assert body["user"]["email"] == "a@b.com"
    assert body["user"]["createdAt"]
    token = body["token"]

    assert api_client.get("/api/auth/me", headers=bearer(token)).status_code == 200

    users = api_client.get("/api/auth/users", headers=bearer(token)).json()
    listed = [u for u in users if u["id"] == user_id]
    assert listed and "password" not in listed[0] and "passwordHash" not in listed[0]

    assert api_client.delete(f"/api/auth/{user_id}", headers=bearer(token)).status_code == 200
    again = api_client.delete(f"/api/auth/{user_id}", headers=bearer(token))
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "not_found"
