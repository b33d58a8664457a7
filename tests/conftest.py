"""
Pytest configuration and fixtures for testing.
"""
import os

# Settings are read at import time, so the environment is prepared first
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_campus_events.db")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["CACHE_ENABLED"] = "false"
os.environ["AUTH_REQUIRED"] = "true"
os.environ["ASSIGNMENT_DISPATCH"] = "inline"
os.environ.setdefault("ENVIRONMENT", "test")

import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from campus_events.main import app
from campus_events.api.v1.deps import get_profile_client, limiter
from campus_events.core.security import create_access_token
from campus_events.db.models import Event, EventStudent, EventType
from campus_events.db.session import Base, get_session
from campus_events.core.validators import parse_event_datetime
from tests.factories import CALLER_ID, CREATOR_ID, PROMO_A, PROMO_B, FakeProfileClient, student_id

# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,  # Disable connection pooling for tests
    echo=False,
)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture
def profile_client() -> FakeProfileClient:
    fake = FakeProfileClient()
    fake.active = [{"id_user": student_id(i)} for i in range(1, 4)]
    fake.promotions = {
        PROMO_A: [{"id_user": student_id(1)}, {"id_user": student_id(2)}],
        PROMO_B: [{"profile": {"id_user": student_id(2)}}, {"id_profile": "p-77"}],
    }
    fake.profiles = {"p-77": {"id": "p-77", "id_user": student_id(7)}}
    return fake


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def caller_token() -> str:
    return create_access_token({"sub": CALLER_ID, "role": "student"})


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, profile_client, caller_token) -> AsyncGenerator[AsyncClient, None]:
    """
    Authenticated HTTP client for the API.
    Overrides the database session and the profile service client.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_profile_client] = lambda: profile_client

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {caller_token}"},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def anonymous_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def disable_rate_limiting(monkeypatch):
    """Disable rate limiting for all tests."""
    monkeypatch.setattr(limiter, "enabled", False)


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession):
    """Insert an event row directly, bypassing the API and the resolver."""
    async def _make(**overrides) -> Event:
        fields = dict(
            title="Hub talk",
            event_datetime=parse_event_datetime("2026-11-05T14:00:00.000Z"),
            duration_minutes=60,
            event_type=EventType.hub_talk,
            id_creator=uuid.UUID(CREATOR_ID),
            slot_duration=30,
            allow_multiple_users=False,
            target_promotions=[],
            slots=[],
        )
        fields.update(overrides)
        event = Event(**fields)
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event
    return _make


@pytest_asyncio.fixture
async def assign(db_session: AsyncSession):
    """Insert an event_student row directly."""
    async def _assign(event_id: int, sid: str) -> EventStudent:
        row = EventStudent(id_event=event_id, id_student=uuid.UUID(sid))
        db_session.add(row)
        await db_session.commit()
        await db_session.refresh(row)
        return row
    return _assign
