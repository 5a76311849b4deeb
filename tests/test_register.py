"""
tests/test_register.py -- Integration tests for POST /api/auth/register.

Coverage:
  - 201 with {message, userId}; password stored only as a bcrypt hash
  - Ordered validation: first failing field wins, 400 with a field message
  - No write when validation fails
  - Duplicate email -> 409, never a second row
  - Store failure -> opaque 500, detail logged server-side
"""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

_VALID = {"name": "Al", "email": "a@b.com", "password": "secret1"}


def test_register_success(api_client):
    resp = api_client.post("/api/auth/register", json=_VALID)
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["message"] == "User registered successfully"
    assert data["userId"]

    stored = api_client.app.state.user_store.get_by_id(data["userId"])
    assert stored.email == "a@b.com"
    assert stored.password_hash != "secret1"
    assert stored.password_hash.startswith("$2")


@pytest.mark.parametrize(
    ("body", "code", "message"),
    [
        ({"email": "a@b.com", "password": "secret1"}, "invalid_name", "Name must be at least 2 characters"),
        ({**_VALID, "name": "A"}, "invalid_name", "Name must be at least 2 characters"),
        ({**_VALID, "email": "ab.com"}, "invalid_email", "Invalid email format"),
        ({**_VALID, "email": "a@bcom"}, "invalid_email", "Invalid email format"),
        ({**_VALID, "password": "12345"}, "invalid_password", "Password must be at least 6 characters"),
        ({"name": "A", "email": "bad", "password": "1"}, "invalid_name", "Name must be at least 2 characters"),
        ({"name": "Al", "email": "bad", "password": "1"}, "invalid_email", "Invalid email format"),
    ],
)
def test_register_validation(api_client, body, code, message):
    resp = api_client.post("/api/auth/register", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"error": {"code": code, "message": message}}
    assert api_client.app.state.user_store.count_users() == 0


def test_register_wrong_type_is_400(api_client):
    resp = api_client.post("/api/auth/register", json={"name": 42, "email": "a@b.com", "password": "secret1"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"


def test_register_non_json_body_is_400(api_client):
    resp = api_client.post(
        "/api/auth/register",
        content=b"name=Al",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert resp.status_code == 400


def test_register_duplicate_email_conflict(api_client):
    assert api_client.post("/api/auth/register", json=_VALID).status_code == 201
    resp = api_client.post("/api/auth/register", json={**_VALID, "name": "Other"})
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "email_taken"
    emails = [u.email for u in api_client.app.state.user_store.list_users()]
    assert emails == ["a@b.com"]


def test_register_store_failure_is_opaque_500(api_client, caplog):
    boom = OperationalError("INSERT INTO users", {}, Exception("disk I/O error at /var/lib/secret"))
    with patch.object(api_client.app.state.user_store, "create_user", side_effect=boom):
        with caplog.at_level(logging.ERROR, logger="userauth.api"):
            resp = api_client.post("/api/auth/register", json=_VALID)
    assert resp.status_code == 500
    assert resp.json() == {"error": {"code": "internal_error", "message": "Internal Server Error"}}
    assert "secret" not in resp.text
    assert any("Error registering user" in r.message for r in caplog.records)


def test_register_never_echoes_password(api_client):
    resp = api_client.post("/api/auth/register", json=_VALID)
    assert "secret1" not in resp.text
