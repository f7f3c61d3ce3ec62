"""
tests/conftest.py -- Shared test fixtures for the inventory API.

This module provides:
  - engine / user_store / session_store / product_store: a fresh in-memory
    SQLite database per test for unit tests
  - make_auth_service(): an AuthService over those stores with an injectable clock
  - rng + random_phone / random_password: seeded test data from an
    explicitly constructed random.Random
  - api_client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
api_client because TestClient runs route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

DEBUG and RATE_LIMIT_ENABLED must be set before any application import:
get_settings() auto-generates SECRET_KEY in dev mode instead of raising, and
the shared limiter reads its enabled flag at import time.
"""

from __future__ import annotations

import asyncio
import os
import random
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: Set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app, init_state
from auth.passwords import hash_password
from auth.service import AuthService
from auth.store import SessionStore, UserStore
from auth.tokens import create_token
from core.config import get_settings
from core.db import create_db_engine
from inventory.store import ProductStore

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
ACCESS_DURATION = timedelta(minutes=15)
REFRESH_DURATION = timedelta(hours=24)

# Hashing is deliberately slow; hash the shared fixture password once.
FIXTURE_PASSWORD = "fixture-password-1"
_FIXTURE_HASH = hash_password(FIXTURE_PASSWORD)

# ---------------------------------------------------------------------------
# Random test data
# ---------------------------------------------------------------------------


@pytest.fixture
def rng() -> random.Random:
    """A seeded generator owned by the test; never the module-level random."""
    return random.Random(20240601)


_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


@pytest.fixture
def random_phone(rng):
    """Callable returning a fresh random 010XXXXXXXX number on each call."""
    return lambda: "010" + "".join(rng.choice("0123456789") for _ in range(8))


@pytest.fixture
def random_password(rng):
    """Callable returning a random alphanumeric password (12 characters by default)."""
    return lambda length=12: "".join(rng.choice(_ALPHABET) for _ in range(length))


# ---------------------------------------------------------------------------
# Unit-test stores -- one blank database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    eng = create_db_engine("sqlite:///:memory:")
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def session_store(engine) -> SessionStore:
    return SessionStore(engine)


@pytest.fixture
def product_store(engine) -> ProductStore:
    return ProductStore(engine)


class FrozenClock:
    """Callable clock for AuthService; tests move it with advance()."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def make_auth_service(user_store, session_store, clock):
    """Factory so tests can swap in MagicMock stores while keeping the defaults."""

    def _make(users=None, sessions=None) -> AuthService:
        return AuthService(
            user_store=users if users is not None else user_store,
            session_store=sessions if sessions is not None else session_store,
            secret_key=TEST_SECRET,
            access_token_duration=ACCESS_DURATION,
            refresh_token_duration=REFRESH_DURATION,
            clock=clock,
        )

    return _make


@pytest.fixture
def existing_user(user_store) -> tuple[int, str, str]:
    """A registered user: (user_id, phone_number, plaintext password)."""
    phone = "01000000001"
    uid = user_store.create_user(phone, _FIXTURE_HASH)
    return uid, phone, FIXTURE_PASSWORD


# ---------------------------------------------------------------------------
# Integration client
# ---------------------------------------------------------------------------


def _patch_lifespan(engine):
    """Return an async context manager that replaces the real lifespan.

    Wires a pre-created test engine into app.state through the same
    init_state() the real lifespan uses, so routes see the isolated test DB.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        init_state(app, get_settings(), engine)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, int], None, None]:
    """Yield (client, access_token, user_id) for API integration tests.

    One database per test module. The fixture user has phone number
    01099999999 and password FIXTURE_PASSWORD; the access token is signed
    with the app's secret and valid for an hour.

    base_url uses localhost so requests pass TrustedHostMiddleware.
    """
    db_name = request.module.__name__.replace(".", "_")
    engine = create_db_engine(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")

    uid = UserStore(engine).create_user("01099999999", _FIXTURE_HASH)
    token, _ = create_token(uid, get_settings().secret_key, timedelta(hours=1))

    app.router.lifespan_context = _patch_lifespan(engine)

    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        yield client, token, uid

    engine.dispose()


@pytest.fixture
def api_credentials() -> tuple[str, str]:
    """(phone_number, password) of the user api_client creates."""
    return "01099999999", FIXTURE_PASSWORD
