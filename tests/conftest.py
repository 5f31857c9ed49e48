"""Test config and shared fixtures."""
import os

# Settings are read at import time; pin a hermetic test environment first
os.environ.update({
    "APP_ENV": "testing",
    "APP_ENV_FILE": os.devnull,
    "DEBUG": "false",
    "SECRET_KEY": "test-signing-secret-0123456789abcdef",
    "DB_URL": "sqlite+aiosqlite:///:memory:",
    "BCRYPT_ROUNDS": "4",
    "NOTIFICATION_DRIVER": "mock",
    "BILLING_DRIVER": "mock",
    "STRIPE_PRICE_SOLO": "price_solo_test",
    "STRIPE_PRICE_TEAM": "price_team_test",
    "STRIPE_PRICE_BROKERAGE": "price_brokerage_test",
    "APP_URL": "http://app.test",
})

import pytest
from datetime import timedelta
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import apps.models  # noqa: F401  registers every table on SQLModel.metadata
from main import create_app
from framework.clock import utc_now
from framework.config import settings
from framework.dependencies import get_db
from framework.permissions import AuthorizedContext, Role
from framework.repository.unit_of_work import UnitOfWork
from framework.security import hash_password
from apps.identity.models import Tenant, User
from apps.widgets.models import Widget


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "correct-horse-42"


@pytest.fixture(scope="function")
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """Create async test database session on a fresh schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async_session_maker = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest.fixture
def uow(async_session: AsyncSession) -> UnitOfWork:
    return UnitOfWork(session=async_session)


@pytest.fixture
def app(async_session: AsyncSession):
    """Application wired to the test session."""
    application = create_app(settings)

    async def _get_db():
        yield async_session

    application.dependency_overrides[get_db] = _get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_tenant(async_session: AsyncSession):
    """Factory: tenant on a running trial unless overridden."""
    async def _make(name: str = "Acme Realty", **fields) -> Tenant:
        fields.setdefault("plan", "trial")
        fields.setdefault("subscription_status", "trialing")
        fields.setdefault("trial_ends_at", utc_now() + timedelta(days=14))
        tenant = Tenant(name=name, **fields)
        async_session.add(tenant)
        await async_session.commit()
        return tenant
    return _make


@pytest.fixture
def make_user(async_session: AsyncSession):
    """Factory: user with TEST_PASSWORD."""
    async def _make(tenant: Tenant, email: str, role: str = Role.OWNER.value, name: str = "Test User") -> User:
        user = User(
            email=email,
            name=name,
            hashed_password=hash_password(TEST_PASSWORD),
            tenant_id=tenant.id,
            role=role,
        )
        async_session.add(user)
        await async_session.commit()
        return user
    return _make


@pytest.fixture
def make_widget(async_session: AsyncSession):
    async def _make(tenant: Tenant, name: str = "Main site", **fields) -> Widget:
        widget = Widget(tenant_id=tenant.id, name=name, greeting_text="Hi! How can I help?", **fields)
        async_session.add(widget)
        await async_session.commit()
        return widget
    return _make


@pytest.fixture
async def tenant(make_tenant) -> Tenant:
    return await make_tenant()


@pytest.fixture
async def owner(make_user, tenant) -> User:
    return await make_user(tenant, "owner@acme.test", Role.OWNER.value, name="Olive Owner")


@pytest.fixture
async def agent(make_user, tenant) -> User:
    return await make_user(tenant, "agent@acme.test", Role.AGENT.value, name="Andy Agent")


def build_context(user: User) -> AuthorizedContext:
    """Authorized context as the permission gate would build it for `user`."""
    return AuthorizedContext(
        identity_id=user.id,
        tenant_id=user.tenant_id,
        role=Role(user.role),
        email=user.email,
    )


@pytest.fixture
def context_for():
    return build_context


@pytest.fixture
def session_cookie(app):
    """Factory: Cookie header carrying a fresh session for a user."""
    def _cookie(user: User) -> dict:
        cookie = app.state.session_manager.start_session(user)
        return {"Cookie": f"{cookie.name}={cookie.value}"}
    return _cookie
