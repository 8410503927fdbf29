"""
tests/conftest.py -- Shared test fixtures for CampusDesk.

This module provides:
  - make_store(): an isolated named shared-memory SQLite AccountStore
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - api_client: (client, store, admin) -- TestClient, its store and a seeded admin account
  - auth_header(): builds an Authorization header for a user id
  - create_account(): seeds a user + profile directly through the store

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format shares one in-memory instance across all
connections in the same process.

DEBUG and RATE_LIMIT_ENABLED must be set before any app import: get_settings()
is cached on first use, the signing key is generated in dev mode, and the
login rate limit would otherwise trip during the suite.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: configure before any core/auth/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import ADMIN, Account, AdminProfile, Profile, User
from auth.store import AccountStore
from auth.tokens import create_access_token, hash_password

ADMIN_EMAIL = "root@campus.com"
ADMIN_PASSWORD = "rootpass123"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_store(name: str | None = None) -> AccountStore:
    """Create an isolated named shared-memory SQLite store.

    A random suffix keeps test modules from seeing each other's rows.
    """
    name = name or uuid.uuid4().hex
    return AccountStore(db_url=f"sqlite:///file:test_{name}?mode=memory&cache=shared&uri=true")


def create_account(store: AccountStore, name: str, email: str, password: str, role: str, profile: Profile) -> Account:
    """Seed a user and its profile without going through the API."""
    return store.create_account(
        User(name=name, email=email, role=role, hashed_password=hash_password(password)),
        profile,
    )


def auth_header(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def _patch_lifespan(store: AccountStore):
    """Return an async context manager that replaces the real lifespan.

    The real lifespan opens the configured database and runs the admin
    bootstrap; tests wire in a pre-seeded store instead.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    """A fresh, empty store for unit tests."""
    s = make_store()
    yield s
    s.close()


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, AccountStore, Account], None, None]:
    """Yield (client, store, admin) for API integration tests.

    One TestClient per test module. The store is seeded with one admin
    account (ADMIN_EMAIL / ADMIN_PASSWORD) before the client starts.
    """
    s = make_store()
    admin = create_account(
        s,
        "Root Admin",
        ADMIN_EMAIL,
        ADMIN_PASSWORD,
        ADMIN,
        AdminProfile(employee_id="ADM001", position="Registrar", department="Office"),
    )

    app.router.lifespan_context = _patch_lifespan(s)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, s, admin

    s.close()


@pytest.fixture
def admin_headers(api_client) -> dict[str, str]:
    _client, _store, admin = api_client
    return auth_header(admin.user.id)
