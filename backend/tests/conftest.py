import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from auth.application.services import register_user
from auth.infrastructure.user_repository import DbUserRepository
from main import app
from shared.dependencies import get_db, get_version_retry_queue
from shared.infrastructure.database import Base
from versions.infrastructure.retry_queue import VersionRetryQueue

import auth.infrastructure.models  # noqa: F401
import documents.infrastructure.models  # noqa: F401
import sharing.infrastructure.models  # noqa: F401
import versions.infrastructure.models  # noqa: F401


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'workspace.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def retry_queue(session_factory):
    return VersionRetryQueue(session_factory, interval=0.01, max_attempts=3)


@pytest.fixture(autouse=True)
async def override_dependencies(session_factory, retry_queue):
    async def _override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override
    app.dependency_overrides[get_version_retry_queue] = lambda: retry_queue
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def make_user(db, username: str, full_name: str = ""):
    return await register_user(
        DbUserRepository(db),
        username=username,
        email=f"{username}@example.com",
        full_name=full_name or username.title(),
        password="secret123",
    )


@pytest.fixture
async def alice(db):
    return await make_user(db, "alice", "Alice Smith")


@pytest.fixture
async def bob(db):
    return await make_user(db, "bob", "Bob Jones")


@pytest.fixture
async def carol(db):
    return await make_user(db, "carol", "Carol White")


def paragraph_doc(*paragraphs: str) -> dict:
    return {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": text}]}
            for text in paragraphs
        ],
    }


async def create_user_and_get_headers(client: AsyncClient, suffix: str = "") -> dict:
    """Register a user and return auth headers."""
    await client.post(
        "/api/auth/register",
        json={
            "username": f"testuser{suffix}",
            "email": f"test{suffix}@example.com",
            "full_name": "Test User",
            "password": "secret123",
        },
    )
    resp = await client.post(
        "/api/auth/login",
        json={"email": f"test{suffix}@example.com", "password": "secret123"},
    )
    token = resp.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def auth_headers(client) -> dict:
    return await create_user_and_get_headers(client)
