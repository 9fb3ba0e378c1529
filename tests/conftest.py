"""
Pytest configuration and fixtures for testing.
"""
import os
import tempfile

# Settings are read at import time, so the environment must be in place first
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_eventhub.db")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="eventhub-uploads-")

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.db.session import Base, get_session, build_engine
from app.core.security import hash_password, create_identity_token
from app.db.models.user import User, RoleEnum
from app.db.models.event import Event

TEST_PASSWORD = "Test123!@#"

# Create test engine
test_engine = build_engine(TEST_DATABASE_URL, poolclass=NullPool)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.
    Tables are dropped and recreated around every test for complete isolation.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing API endpoints.
    Overrides the database session dependency.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(db_session: AsyncSession, username: str, role: RoleEnum = RoleEnum.user) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        hashed_password=hash_password(TEST_PASSWORD),
        first_name=username.capitalize(),
        role=role,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user with 'user' role; owns the test events."""
    return await _make_user(db_session, "testuser")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A second regular user who owns nothing."""
    return await _make_user(db_session, "otheruser")


@pytest_asyncio.fixture
async def test_admin(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "adminuser", RoleEnum.admin)


@pytest.fixture
def user_token(test_user: User) -> str:
    return create_identity_token(test_user)


@pytest.fixture
def other_token(other_user: User) -> str:
    return create_identity_token(other_user)


@pytest.fixture
def admin_token(test_admin: User) -> str:
    return create_identity_token(test_admin)


BASE_DATE = datetime(2030, 6, 1, 18, 0, tzinfo=timezone.utc)

EVENT_ROWS = [
    # title, description, category, start offset (days), guests
    ("Summer Music Festival", "Live bands all night", "Music", 3, 500),
    ("Python Workshop", "Learn async programming", "Technology", 1, 30),
    ("Jazz Evening", "Smooth MUSIC by the river", "Arts", 5, 80),
    ("Startup Pitch Night", None, "Business", 2, 120),
    ("Charity Run", "5k fun run", "Sports", 4, 250),
]


@pytest_asyncio.fixture
async def test_events(db_session: AsyncSession, test_user: User) -> list:
    """Create events owned by test_user, inserted out of start-date order."""
    events = []
    for title, description, category, offset, guests in EVENT_ROWS:
        start = BASE_DATE + timedelta(days=offset)
        event = Event(
            title=title,
            description=description,
            category=category,
            start_date=start,
            end_date=start + timedelta(hours=4),
            total_guests=guests,
            location="Nairobi",
            images=[],
            user_id=test_user.id,
        )
        db_session.add(event)
        events.append(event)

    await db_session.commit()
    for event in events:
        await db_session.refresh(event)
    return events


@pytest_asyncio.fixture
async def test_event(test_events: list) -> Event:
    return test_events[0]


@pytest.fixture
def upload_dir() -> str:
    return os.environ["UPLOAD_DIR"]


@pytest.fixture(autouse=True)
def mock_password_hashing(monkeypatch):
    """
    Mock bcrypt password hashing so tests do not depend on the bcrypt backend.
    This fixture is autouse, so it applies to all tests automatically.
    """
    class MockPasswordContext:
        def hash(self, password: str) -> str:
            return f"$2b$12$mockedhash{password}"

        def verify(self, plain: str, hashed: str) -> bool:
            return hashed == f"$2b$12$mockedhash{plain}"

    from app.core import security
    monkeypatch.setattr(security, "pwd_context", MockPasswordContext())
