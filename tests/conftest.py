"""
tests/conftest.py -- Shared test fixtures for TokenGate.

This module provides:
  - FakeClock: a callable clock tests can move forward to simulate elapsed time
  - secret / issuer / verifier: a token core bound to "test-secret" and a FakeClock
  - _patch_lifespan(): wires test stores and the token core into app.state
  - api_client: TestClient plus a seeded user for API integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API fixture because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread.

DEBUG must be set before any auth/core import so get_settings() generates a
SECRET_KEY in dev mode rather than raising. The login rate limit is raised
so repeated logins across a test module never trip it.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

# CRITICAL: set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.credentials import CredentialVerifier, hash_password
from auth.flow import AuthenticationFlow
from auth.models import User
from auth.secret import SigningSecret
from auth.store import UserStore
from auth.tokens import TokenIssuer, TokenVerifier

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock. Call it for the current instant; advance() moves time forward."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Token core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def make_clock() -> type[FakeClock]:
    return FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def secret() -> SigningSecret:
    return SigningSecret("test-secret")


@pytest.fixture
def issuer(secret: SigningSecret, clock: FakeClock) -> TokenIssuer:
    return TokenIssuer(secret, clock=clock)


@pytest.fixture
def verifier(secret: SigningSecret, clock: FakeClock) -> TokenVerifier:
    return TokenVerifier(secret, clock=clock)


@pytest.fixture
def memory_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    client: TestClient
    clock: FakeClock
    store: UserStore
    username: str
    password: str


def _patch_lifespan(store: UserStore, flow: AuthenticationFlow):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = store
        app.state.auth_flow = flow
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use an isolated store and a FakeClock shared
    by the issuer and the verifier.
    """
    store = UserStore(db_url="sqlite:///file:test_auth_api?mode=memory&cache=shared&uri=true")
    store.create_user(User(username="alice", hashed_password=hash_password("wonderland")))

    clock = FakeClock()
    secret = SigningSecret("api-test-secret")
    flow = AuthenticationFlow(
        store=store,
        verifier=CredentialVerifier(),
        issuer=TokenIssuer(secret, clock=clock),
        token_verifier=TokenVerifier(secret, clock=clock),
    )

    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(store, flow)
    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield ApiContext(client=client, clock=clock, store=store, username="alice", password="wonderland")
    finally:
        app.router.lifespan_context = original_lifespan
        store.close()
