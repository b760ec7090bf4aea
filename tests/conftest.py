"""
Test infrastructure for the Publisher API.

Strategy
--------
- SQLite in-memory via aiosqlite removes the need for a running Postgres
  instance, keeping the suite fast and self-contained.
- StaticPool makes every session share the one in-memory connection;
  a new connection would see an empty database.
- The app's get_db dependency is overridden so every request uses the
  test session factory.
- All tables are created before each test and dropped after it.
- The Redis cache is disabled by setting cache._redis = None; the
  CacheManager treats that as "no cache", so tests exercise the real
  database path.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from publisher.database import Base, commit, create_tables, get_db, rollback
from publisher.main import app
from publisher.cache import cache
from publisher.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await commit(session)
        except Exception:
            await rollback(session)
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

USER_PASSWORD = "s3cret-pass"


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    cache._redis = None
    await create_tables(engine_test)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that call services directly.
    Nothing is committed; the tables are dropped after the test anyway.
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def auth_headers(async_client: AsyncClient) -> dict[str, str]:
    """Register the first user (the admin), log in, and return its Authorization header."""
    resp = await async_client.post("/api/v1/user", json={
        "first_name": "Anna",
        "last_name": "Writer",
        "email": "anna@example.com",
        "password": USER_PASSWORD,
        "repeated_password": USER_PASSWORD,
    })
    assert resp.status_code == 201

    resp = await async_client.post("/api/v1/user/login", json={
        "email": "anna@example.com",
        "password": USER_PASSWORD,
    })
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


async def login_headers(client: AsyncClient, email: str, first_name: str = "Reader") -> dict[str, str]:
    """Register *email* and return the Authorization header for it."""
    resp = await client.post("/api/v1/user", json={
        "first_name": first_name,
        "last_name": "Account",
        "email": email,
        "password": USER_PASSWORD,
        "repeated_password": USER_PASSWORD,
    })
    assert resp.status_code == 201

    resp = await client.post("/api/v1/user/login", json={"email": email, "password": USER_PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest_asyncio.fixture
async def reader_headers(async_client: AsyncClient, auth_headers: dict[str, str]) -> dict[str, str]:
    """A second account; the first one (``auth_headers``) is the admin."""
    return await login_headers(async_client, "ivan@example.com", first_name="Ivan")


@pytest_asyncio.fixture
async def category_ids(async_client: AsyncClient, auth_headers: dict[str, str]) -> list[int]:
    """Three categories created through the API."""
    ids = []
    for name in ("Programming", "Travel", "Music"):
        resp = await async_client.post("/api/v1/categories", json={"name": name}, headers=auth_headers)
        assert resp.status_code == 201
        ids.append(resp.json()["id"])
    return ids


def article_payload(categories: list[int], **overrides) -> dict:
    """A valid article payload; keyword arguments replace fields."""
    payload = {
        "title": "How to start programming in Python in a month",
        "announce": "A short route for people who have never written a line of code.",
        "full_text": "Pick one project, write a little every day and read other people's code.",
        "published_at": "2024-03-15",
        "categories": categories,
        "image": "keyboard.jpg",
    }
    payload.update(overrides)
    return payload


VALID_COMMENT = {"text": "Thanks, this is exactly what I was looking for!"}
