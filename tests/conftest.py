"""
tests/conftest.py -- Shared test fixtures for the account service.

This module provides:
  - FixedClock: a settable clock injected into TokenIssuer for time-window tests
  - store / issuer / service: isolated unit-level collaborators (plain :memory: DB)
  - api_client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the API fixture because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates JWT_SECRET_KEY in dev mode rather than raising.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate JWT_SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import AccountStore
from auth.tokens import TokenIssuer

TEST_SECRET = "test-signing-secret-0123456789abcdef"  # 36 bytes
TEST_ISSUER = "AccountService"
TEST_AUDIENCE = "AccountServiceUsers"

# Account created before the API client starts; tests use it to log in and
# to authenticate /users requests.
API_USER = {
    "firstName": "Test",
    "lastName": "Admin",
    "email": "test.admin@example.com",
    "password": "Adm1nPass",
}


class FixedClock:
    """Callable clock whose current time tests can set or advance."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def issuer(clock: FixedClock) -> TokenIssuer:
    return TokenIssuer(TEST_SECRET, issuer=TEST_ISSUER, audience=TEST_AUDIENCE, clock=clock)


@pytest.fixture
def service(store: AccountStore, issuer: TokenIssuer) -> AuthService:
    return AuthService(store, issuer)


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(store: AccountStore, issuer: TokenIssuer):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-created test store and issuer into app.state so TestClient
    routes see an isolated database rather than the configured one.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.token_issuer = issuer
        app.state.account_store = store
        app.state.auth_service = AuthService(store, issuer)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, token, account_id) for API integration tests.

    Each test module gets its own named in-memory database. The API_USER
    account is registered through the service before the client starts, and
    its token is returned for Authorization headers.
    """
    db_name = request.module.__name__.rsplit(".", 1)[-1]
    store = AccountStore(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")
    issuer = TokenIssuer(TEST_SECRET, issuer=TEST_ISSUER, audience=TEST_AUDIENCE)
    result = AuthService(store, issuer).register(
        API_USER["firstName"], API_USER["lastName"], API_USER["email"], API_USER["password"]
    )

    app.router.lifespan_context = _patch_lifespan(store, issuer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, result.token, result.account.id

    store.close()


@pytest.fixture
def auth_headers(api_client: tuple[TestClient, str, int]) -> dict[str, str]:
    _client, token, _uid = api_client
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api_user() -> dict[str, str]:
    """Registration body of the account behind the api_client token."""
    return dict(API_USER)
