"""
tests/conftest.py -- Shared test fixtures for SPADE unit and integration tests.

This module provides:
  - credential_store / profile_store: fresh in-memory stores per test
  - token_manager: TokenManager with fixed test secrets
  - service: AuthService wired to the in-memory stores
  - api_client: TestClient with a patched lifespan and isolated stores

Design: API tests use named shared-memory SQLite URIs (not plain :memory:)
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

DEBUG and the rate limit env vars must be set before any api/auth/core import
so get_settings() builds test-friendly Settings on first call.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any api/auth/core import -- get_settings() is cached.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import CredentialStore
from auth.tokens import TokenManager
from community.store import ProfileStore

TEST_ACCESS_SECRET = "a" * 32 + "-access-secret-for-tests"
TEST_REFRESH_SECRET = "r" * 32 + "-refresh-secret-for-tests"

VALID_PASSWORD = "Abcdef1!"


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def credential_store() -> Generator[CredentialStore, None, None]:
    store = CredentialStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def profile_store() -> Generator[ProfileStore, None, None]:
    store = ProfileStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def token_manager() -> TokenManager:
    return TokenManager(
        access_secret=TEST_ACCESS_SECRET,
        refresh_secret=TEST_REFRESH_SECRET,
        issuer="auth.test",
        audience="test",
    )


@pytest.fixture
def service(credential_store: CredentialStore, profile_store: ProfileStore, token_manager: TokenManager) -> AuthService:
    return AuthService(credential_store, profile_store, token_manager)


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[CredentialStore, ProfileStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    auth_url = f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true"
    community_url = f"sqlite:///file:test_community_{db_suffix}?mode=memory&cache=shared&uri=true"
    return CredentialStore(auth_url), ProfileStore(community_url)


def _patch_lifespan(credential_store: CredentialStore, profile_store: ProfileStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured databases.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.credential_store = credential_store
        app.state.profile_store = profile_store
        app.state.auth_service = AuthService(credential_store, profile_store, TokenManager.from_settings())
        yield

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, CredentialStore, ProfileStore], None, None]:
    """Yield (client, credential_store, profile_store) for API integration tests.

    Function-scoped: every test gets empty stores and a fresh cookie jar, so
    session state from one test never leaks into the next.
    """
    credential_store, profile_store = _make_test_stores(uuid.uuid4().hex)
    app.router.lifespan_context = _patch_lifespan(credential_store, profile_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, credential_store, profile_store

    credential_store.close()
    profile_store.close()
