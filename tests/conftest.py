"""
tests/conftest.py -- Shared test fixtures for the gallery service tests.

This module provides:
  - engine: an isolated named shared-memory SQLite database per test
  - user_store / session_store / gallery_store: stores bound to that engine
  - client: TestClient over the full ASGI app (API + SPA fallback) whose
    lifespan is patched to wire app.state onto the test engine
  - register() / login() / make_user(): small helpers for multi-user tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process;
a uuid suffix keeps tests from seeing each other's rows.

Environment must be set before any application import: get_settings() is
cached at first use and auth/tokens.py reads it at import time.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any auth/core import.
#   DEBUG=true            -> auto-generated SECRET_KEY, non-Secure cookies
#   BCRYPT_ROUNDS=4       -> fast hashing
#   LOGIN_RATE_LIMIT      -> high enough that the suite never trips it
#   SEED_ON_STARTUP=false -> tests seed explicitly where they need data
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("SEED_ON_STARTUP", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import wire_app_state
from asgi import app
from auth.models import Role, User
from auth.store import SessionStore, UserStore
from auth.tokens import hash_password
from core.db import create_db_engine
from gallery.store import GalleryStore

DEFAULT_PASSWORD = "pw123456"


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    url = f"sqlite:///file:test_gallery_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    eng = create_db_engine(url)
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine: Engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def session_store(engine: Engine) -> SessionStore:
    return SessionStore(engine)


@pytest.fixture
def gallery_store(engine: Engine) -> GalleryStore:
    return GalleryStore(engine)


# ---------------------------------------------------------------------------
# App fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(engine: Engine):
    """Return an async context manager that replaces the real lifespan.

    Wires stores and services for the test engine into app.state. The
    purge_task is a long-sleeping coroutine so shutdown can cancel a real
    asyncio.Task exactly as in production.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        wire_app_state(app, engine)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture
def client(engine: Engine) -> Generator[TestClient, None, None]:
    """TestClient over the real app (API + SPA fallback) on the test engine."""
    app.router.lifespan_context = _patch_lifespan(engine)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_user(user_store: UserStore, username: str, password: str = DEFAULT_PASSWORD, role: Role = Role.user) -> int:
    """Insert a user directly through the store and return its id."""
    user_id = user_store.create_user(User(username=username, hashed_password=hash_password(password), role=role))
    assert user_id is not None, f"user {username!r} already exists"
    return user_id


def register(client: TestClient, username: str, password: str = DEFAULT_PASSWORD) -> dict:
    """Register username on a clean cookie jar; the client is then logged in as them."""
    client.cookies.clear()
    resp = client.post("/api/auth/register", json={"username": username, "password": password})
    assert resp.status_code == 201, f"register {username}: {resp.status_code} {resp.text}"
    return resp.json()


def login(client: TestClient, username: str, password: str = DEFAULT_PASSWORD) -> dict:
    """Log in as username on a clean cookie jar."""
    client.cookies.clear()
    resp = client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, f"login {username}: {resp.status_code} {resp.text}"
    return resp.json()
