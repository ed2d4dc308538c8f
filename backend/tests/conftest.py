"""Test fixtures for DevHub backend tests."""

import os

import bcrypt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import devhub.models  # noqa: F401  (register mappers)
from devhub.core.dependencies import get_services
from devhub.database import Base
from devhub.main import app
from devhub.services.container import DevHubServices
from devhub.services.sync import SnapshotStore, SyncLayer

# Use a throwaway SQLite file per test by default (no external DB needed).
# Override with TEST_DATABASE_URL env var for PostgreSQL integration tests.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

_real_gensalt = bcrypt.gensalt


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Cheapest bcrypt cost factor; hashes stay valid for checkpw."""
    monkeypatch.setattr(bcrypt, "gensalt", lambda: _real_gensalt(rounds=4))


@pytest.fixture
async def engine(tmp_path):
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = create_async_engine(url, echo=False, poolclass=NullPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store(session_factory) -> SnapshotStore:
    return SnapshotStore(session_factory)


@pytest.fixture
async def sync(store) -> SyncLayer:
    layer = SyncLayer(store)
    await layer.start()
    yield layer
    await layer.stop()


@pytest.fixture
async def services(sync) -> DevHubServices:
    container = DevHubServices(sync)
    yield container
    container.events.close()


@pytest.fixture
async def client(services: DevHubServices) -> AsyncClient:
    """Get an HTTP client with the test services injected."""
    app.dependency_overrides[get_services] = lambda: services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def signup(client: AsyncClient, email: str, name: str = "Test User", password: str = "secret123") -> dict:
    """Register an account through the API and return the response body."""
    response = await client.post(
        "/api/auth/signup",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def bearer(auth: dict) -> dict:
    return {"Authorization": f"Bearer {auth['access_token']}"}


@pytest.fixture
async def auth_headers(client: AsyncClient) -> dict:
    """Sign up a test user and return auth headers."""
    return bearer(await signup(client, "alice@example.com", name="Alice"))
