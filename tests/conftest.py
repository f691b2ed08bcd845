"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

os.environ.setdefault("PORTAL_JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("PORTAL_LOG_FORMAT", "console")
os.environ.setdefault("PORTAL_LOG_LEVEL", "WARNING")

from portal.auth.jwt import create_access_token  # noqa: E402
from portal.auth.password import hash_password  # noqa: E402
from portal.config import get_settings  # noqa: E402
from portal.database import close_db, get_engine, get_session, init_db  # noqa: E402
from portal.db.base import Base  # noqa: E402
from portal.db.models import Achievement, Event, User  # noqa: E402
from portal.gamification.ledger import compute_level  # noqa: E402
from portal.main import create_app  # noqa: E402

get_settings.cache_clear()

TEST_PASSWORD = "demo123"

# One argon2 hash shared by every fixture user.
_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[str, None]:
    """Fresh SQLite database per test, schema created from the ORM metadata."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}"
    await init_db(url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield url
    await close_db()


@pytest_asyncio.fixture
async def client(database: str) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to a fresh app instance."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(database: str) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for arranging data and asserting on it."""
    sessions = get_session()
    session = await anext(sessions)
    yield session
    await sessions.aclose()


UserFactory = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> UserFactory:
    """Factory inserting a committed user. Keyword arguments override the defaults."""
    counter = 0

    async def _make(**overrides: object) -> User:
        nonlocal counter
        counter += 1
        now = datetime.now(timezone.utc)
        total_points = int(overrides.pop("total_points", 0))  # type: ignore[call-overload]
        fields: dict = {
            "name": f"Student {counter}",
            "email": f"student{counter}@mce.edu",
            "password_hash": _PASSWORD_HASH,
            "role": "student",
            "student_id": f"CS2024{counter:03d}",
            "department": "Computer Science Engineering",
            "year": "3rd Year",
            "total_points": total_points,
            "level": compute_level(total_points),
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        fields.update(overrides)
        user = User(**fields)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def admin(make_user: UserFactory) -> User:
    return await make_user(
        name="Admin User",
        email="admin@mce.edu",
        role="admin",
        student_id=None,
        year="4th Year",
    )


@pytest_asyncio.fixture
async def student(make_user: UserFactory) -> User:
    return await make_user(name="Alex Johnson", email="student@mce.edu", student_id="CS2021001")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    """Build bearer headers for any user."""
    return auth_headers


@pytest_asyncio.fixture
async def admin_headers(admin: User) -> dict[str, str]:
    return auth_headers(admin)


@pytest_asyncio.fixture
async def student_headers(student: User) -> dict[str, str]:
    return auth_headers(student)


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession, admin: User) -> Callable[..., Awaitable[Event]]:
    """Factory inserting a committed event, a week out by default."""

    async def _make(**overrides: object) -> Event:
        now = datetime.now(timezone.utc)
        fields: dict = {
            "title": "Tech Symposium",
            "description": "Annual technology symposium showcasing student projects",
            "type": "extracurricular",
            "points": 200,
            "department": "All Departments",
            "date": now + timedelta(days=7),
            "status": "upcoming",
            "max_participants": None,
            "created_by": admin.id,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        fields.update(overrides)
        event = Event(**fields)
        db_session.add(event)
        await db_session.commit()
        return event

    return _make


@pytest_asyncio.fixture
async def make_achievement(db_session: AsyncSession, admin: User) -> Callable[..., Awaitable[Achievement]]:
    """Factory inserting a committed achievement (points requirement by default)."""

    async def _make(**overrides: object) -> Achievement:
        now = datetime.now(timezone.utc)
        fields: dict = {
            "title": "Academic Excellence",
            "description": "Scored above 90% in 3 consecutive semesters",
            "category": "academic",
            "rarity": "epic",
            "points": 500,
            "requirement_type": "points",
            "requirement_value": 2000,
            "requirement_description": None,
            "icon": "book-open",
            "created_by": admin.id,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        fields.update(overrides)
        achievement = Achievement(**fields)
        db_session.add(achievement)
        await db_session.commit()
        return achievement

    return _make
