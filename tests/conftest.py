from contextlib import contextmanager
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.bitable.client import BitableClient, get_bitable_client
from libs.common.config import get_settings
from libs.db.base import Base
from libs.db.session import get_async_db
from services.store_service.app.main import app
from services.store_service.dependencies import get_edge_cache
from services.store_service.models import Address, User
from tests.fakes import FakeAddressStore, FakeBitable, InMemoryEdgeCache

settings = get_settings()


def make_user(user_id: int = 1, username: str = "alice") -> AuthUser:
    return AuthUser(user_id=user_id, username=username)


@contextmanager
def override_auth(target_app, user: AuthUser):
    """Temporarily authenticate requests to ``target_app`` as ``user``."""
    previous = target_app.dependency_overrides.get(get_current_user)
    target_app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield
    finally:
        if previous is None:
            target_app.dependency_overrides.pop(get_current_user, None)
        else:
            target_app.dependency_overrides[get_current_user] = previous


# ---------------------------------------------------------------------------
# Relational store
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """
    In-memory SQLite engine. StaticPool keeps a single connection so every
    session sees the tables created here.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_accounts(db_session):
    """Two users with one address each: alice owns address 1, bob owns 2."""
    alice = User(id=1, username="alice", password_hash="x")
    bob = User(id=2, username="bob", password_hash="x")
    db_session.add_all([alice, bob])
    await db_session.flush()
    db_session.add_all(
        [
            Address(
                id=1,
                user_id=1,
                recipient_name="Alice Wang",
                phone="13800000001",
                address="1 Garden Road",
                is_default=True,
            ),
            Address(
                id=2,
                user_id=2,
                recipient_name="Bob Li",
                phone="13800000002",
                address="2 River Street",
            ),
        ]
    )
    await db_session.commit()
    return {"alice": alice, "bob": bob}


# ---------------------------------------------------------------------------
# Bitable
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_bitable() -> FakeBitable:
    return FakeBitable(
        stock_table=settings.FEISHU_STOCK_TABLE_ID,
        order_table=settings.FEISHU_ORDER_TABLE_ID,
    )


@pytest.fixture
def bitable_client(fake_bitable) -> BitableClient:
    return BitableClient.from_settings(transport=fake_bitable.transport())


@pytest.fixture
def edge_cache() -> InMemoryEdgeCache:
    return InMemoryEdgeCache()


@pytest.fixture
def fake_addresses() -> FakeAddressStore:
    return FakeAddressStore()


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(db_session, bitable_client, edge_cache) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient against the store app with Bitable, the relational store and
    the edge cache swapped for test doubles. Requests are anonymous unless a
    test authenticates them with ``override_auth``.
    """
    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_bitable_client] = lambda: bitable_client
    app.dependency_overrides[get_edge_cache] = lambda: edge_cache

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def alice_client(client, seeded_accounts) -> AsyncGenerator[AsyncClient, None]:
    with override_auth(app, make_user(1, "alice")):
        yield client
