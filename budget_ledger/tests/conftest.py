"""
Centralized Test Configuration.

Every test gets its own SQLite file. NullPool gives each session its own
connection, so concurrent sessions behave like separate workers.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool, Pool

from budget_ledger.app.main import app
from budget_ledger.app.db.session import get_db, Base
from budget_ledger.app.core.redis_client import get_redis
from budget_ledger.app.core.guards import Actor
from budget_ledger.app.core.security import get_password_hash
from budget_ledger.app.models.enums import UserRole
from budget_ledger.app.models.tenant import Tenant
from budget_ledger.app.models.user import User
from budget_ledger.app.services.container import build_ledger_services, get_ledger_services
import budget_ledger.app.core.redis_client as redis_client_module


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        return 1 if self.store.pop(key, None) is not None else 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def redis_client():
    return MockRedis()


@pytest.fixture
async def services(session_factory):
    """Fresh ledger services (locks, audit recorder) per test."""
    services = build_ledger_services(session_factory)
    yield services
    await services.audit.drain()


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, redis_client, services):
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_ledger_services] = lambda: services
    yield

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Data fixtures

@pytest.fixture
async def tenants(db_session):
    """Two barangays: Poblacion (A) and San Isidro (B)."""
    tenant_a = Tenant(name="Poblacion", code="POB")
    tenant_b = Tenant(name="San Isidro", code="SIS")
    db_session.add_all([tenant_a, tenant_b])
    await db_session.commit()
    return tenant_a, tenant_b


async def create_user(db_session, username, role, tenant_id=None, password="password123", full_name=None):
    user = User(
        email=f"{username}@test.com",
        username=username,
        full_name=full_name or username.replace(".", " ").title(),
        hashed_password=get_password_hash(password),
        role=role,
        tenant_id=tenant_id,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def actor_for(user) -> Actor:
    return Actor(
        user_id=user.id,
        username=user.username,
        full_name=user.full_name,
        role=user.role,
        tenant_id=user.tenant_id,
    )


@pytest.fixture
async def users(db_session, tenants):
    tenant_a, tenant_b = tenants
    return {
        "admin": await create_user(db_session, "admin", UserRole.MAIN_ADMIN),
        "chairman_a": await create_user(db_session, "chairman.a", UserRole.SK_CHAIRMAN, tenant_a.id),
        "chairman_b": await create_user(db_session, "chairman.b", UserRole.SK_CHAIRMAN, tenant_b.id),
        "kagawad_a": await create_user(db_session, "kagawad.a", UserRole.KAGAWAD, tenant_a.id),
    }


@pytest.fixture
def actors(users):
    return {name: actor_for(user) for name, user in users.items()}


async def login(client, username, password="password123") -> dict:
    response = await client.post("/v1/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def auth_headers(client, users):
    """Bearer headers per fixture user, obtained through the login endpoint."""
    return {
        "admin": await login(client, "admin"),
        "chairman_a": await login(client, "chairman.a"),
        "chairman_b": await login(client, "chairman.b"),
        "kagawad_a": await login(client, "kagawad.a"),
    }


@pytest.fixture
def make_user(db_session):
    async def _make(username, role, tenant_id=None, password="password123", full_name=None):
        return await create_user(db_session, username, role, tenant_id, password, full_name)
    return _make


@pytest.fixture
def login_as(client):
    async def _login(username, password="password123"):
        return await login(client, username, password)
    return _login
