"""
Test infrastructure for blogql.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The driver's own transaction handling is switched off and SQLAlchemy
  emits BEGIN itself, so SAVEPOINT / ROLLBACK TO behave as they do on
  Postgres.  Update and delete depend on that.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- A test talks to the database either through ``db_session`` (service
  tests) or through ``async_client`` (GraphQL tests), never both: they
  share the single StaticPool connection.
"""
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from blogql.database import Base, get_db
from blogql.main import app
from blogql.middleware import install_query_counter
from blogql.schemas import UserCreate
from blogql.services import user_service

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Register the per-request SQL query counter on the test engine.
install_query_counter(engine_test)


@event.listens_for(engine_test.sync_engine, "connect")
def _disable_driver_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine_test.sync_engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override — replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that call services directly.
    Nothing is committed; the session is rolled back on close.
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def writer(db_session: AsyncSession):
    return await user_service.create_user(
        db_session, UserCreate(name="Writer", email="writer@example.com")
    )


@pytest_asyncio.fixture
async def stranger(db_session: AsyncSession):
    return await user_service.create_user(
        db_session, UserCreate(name="Stranger", email="stranger@example.com")
    )


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def gql(async_client: AsyncClient):
    """
    Return ``gql(query, variables=None, token=None)`` which POSTs to
    ``/graphql`` and returns the decoded response body.
    """

    async def _execute(query: str, variables: dict | None = None, token: str | None = None) -> dict:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        resp = await async_client.post(
            "/graphql",
            json={"query": query, "variables": variables or {}},
            headers=headers,
        )
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _execute
