"""
tests/conftest.py -- Shared fixtures for the auth service tests.

This module provides:
  - make_store(): isolated named shared-memory SQLite UserStore
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - api_client: TestClient over the real app with a fresh store per test
  - register_and_login(): helper returning (user_id, token)

Named shared-memory SQLite URIs (not plain :memory:) are required because
TestClient runs sync route handlers in a thread pool. Plain :memory: DBs are
per-connection and would present a blank schema to each worker thread.

Environment variables must be set before any api/auth/core import:
get_settings() is cached on first use and refuses to build without JWT_SECRET.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before importing anything that calls get_settings().
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-the-auth-suite-0123456789")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite:///file:unused_default?mode=memory&cache=shared&uri=true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.store import UserStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_store(name: str | None = None) -> UserStore:
    """Create an isolated named shared-memory SQLite store."""
    db_name = name or f"test_auth_{uuid.uuid4().hex}"
    return UserStore(db_url=f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(user_store: UserStore):
    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        yield

    return test_lifespan


def register_and_login(
    client: TestClient,
    name: str = "Al",
    email: str = "a@b.com",
    password: str = "secret1",
) -> tuple[str, str]:
    """Register then log in; return (user_id, token)."""
    resp = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    user_id = resp.json()["userId"]
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return user_id, resp.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = make_store()
    yield s
    s.close()


@pytest.fixture
def api_client(store: UserStore) -> Generator[TestClient, None, None]:
    """TestClient over the real app, backed by a fresh in-memory store.

    The store is also reachable as client.app.state.user_store for tests that
    need to inspect or sabotage it.
    """
    app.router.lifespan_context = _patch_lifespan(store)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
