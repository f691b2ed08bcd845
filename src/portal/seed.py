"""Demo data: one admin, a handful of students, events and achievements.

Run with ``python -m portal.seed``. Every step matches existing rows by a
natural key (email or title), so running it twice changes nothing.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.password import hash_password
from portal.config import get_settings
from portal.database import close_db, get_session, init_db
from portal.db.models import Achievement, Event, User
from portal.gamification.ledger import compute_level

logger = logging.getLogger(__name__)

ADMIN_SEED: dict = {
    "name": "Admin User",
    "email": "admin@mce.edu",
    "password": "admin123",
    "role": "admin",
    "department": "Computer Science Engineering",
    "year": "4th Year",
}

STUDENT_SEED_DATA: list[dict] = [
    {
        "name": "Alex Johnson",
        "email": "student@mce.edu",
        "password": "demo123",
        "student_id": "CS2021001",
        "department": "Computer Science Engineering",
        "year": "3rd Year",
        "total_points": 2850,
    },
    {
        "name": "Sarah Wilson",
        "email": "sarah.wilson@mce.edu",
        "password": "demo123",
        "student_id": "CS2021002",
        "department": "Computer Science Engineering",
        "year": "3rd Year",
        "total_points": 2200,
    },
    {
        "name": "Mike Chen",
        "email": "mike.chen@mce.edu",
        "password": "demo123",
        "student_id": "EC2021001",
        "department": "Electronics and Communication Engineering",
        "year": "2nd Year",
        "total_points": 1800,
    },
    {
        "name": "Emily Davis",
        "email": "emily.davis@mce.edu",
        "password": "demo123",
        "student_id": "ME2021001",
        "department": "Mechanical Engineering",
        "year": "4th Year",
        "total_points": 3200,
    },
]

ACHIEVEMENT_SEED_DATA: list[dict] = [
    {
        "title": "Academic Excellence",
        "description": "Scored above 90% in 3 consecutive semesters",
        "category": "academic",
        "rarity": "epic",
        "points": 500,
        "requirement_type": "points",
        "requirement_value": 2000,
        "icon": "book-open",
    },
    {
        "title": "Team Player",
        "description": "Won 3 team sports competitions",
        "category": "sports",
        "rarity": "rare",
        "points": 300,
        "requirement_type": "events",
        "requirement_value": 3,
        "icon": "trophy",
    },
    {
        "title": "Leadership Master",
        "description": "Led 5 successful projects or events",
        "category": "extracurricular",
        "rarity": "legendary",
        "points": 1000,
        "requirement_type": "events",
        "requirement_value": 5,
        "icon": "crown",
    },
    {
        "title": "Speed Demon",
        "description": "Complete 10 assignments before deadline",
        "category": "academic",
        "rarity": "common",
        "points": 100,
        "requirement_type": "events",
        "requirement_value": 10,
        "icon": "zap",
    },
    {
        "title": "First Steps",
        "description": "Participate in your first event",
        "category": "special",
        "rarity": "common",
        "points": 50,
        "requirement_type": "events",
        "requirement_value": 1,
        "icon": "star",
    },
    {
        "title": "Weekly Regular",
        "description": "Attend an event every week for a month",
        "category": "special",
        "rarity": "rare",
        "points": 200,
        "requirement_type": "streak",
        "requirement_value": 4,
        "icon": "calendar",
    },
    {
        "title": "Campus Ambassador",
        "description": "Nominated by faculty to represent the college",
        "category": "special",
        "rarity": "epic",
        "points": 400,
        "requirement_type": "custom",
        "requirement_description": "Faculty nomination",
        "icon": "award",
    },
]

# (title, description, type, points, department, days from now, status)
EVENT_SEED_DATA: list[tuple] = [
    ("Mid-Semester Exam - Data Structures", "Comprehensive exam covering all data structures concepts",
     "academic", 200, "Computer Science Engineering", -30, "completed"),
    ("Inter-Department Cricket Tournament", "Annual cricket tournament between all departments",
     "sports", 150, "All Departments", -14, "completed"),
    ("Tech Symposium", "Annual technology symposium showcasing student projects",
     "extracurricular", 300, "All Departments", 14, "upcoming"),
    ("Database Systems Lab Exam", "Practical exam on database design and implementation",
     "academic", 150, "Computer Science Engineering", 10, "upcoming"),
    ("Basketball Championship", "Inter-department basketball championship",
     "sports", 200, "All Departments", 21, "upcoming"),
]


async def _seed_user(db: AsyncSession, data: dict, role: str) -> User:
    existing = (await db.execute(select(User).where(User.email == data["email"]))).scalar_one_or_none()
    if existing is not None:
        return existing
    now = datetime.now(timezone.utc)
    total_points = data.get("total_points", 0)
    user = User(
        name=data["name"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        role=role,
        student_id=data.get("student_id"),
        department=data.get("department"),
        year=data.get("year"),
        total_points=total_points,
        level=compute_level(total_points),
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    await db.flush()
    return user


async def seed_users(db: AsyncSession) -> tuple[User, list[User]]:
    """Create the demo admin and students if missing."""
    admin = await _seed_user(db, ADMIN_SEED, "admin")
    students = [await _seed_user(db, data, "student") for data in STUDENT_SEED_DATA]
    logger.info("Seeded admin %s and %d students", admin.email, len(students))
    return admin, students


async def seed_achievements(db: AsyncSession, created_by: int) -> int:
    """Insert any catalogue achievement whose title is not present yet.

    Returns the number of achievements inserted.
    """
    existing = set((await db.execute(select(Achievement.title))).scalars().all())
    now = datetime.now(timezone.utc)
    inserted = 0
    for data in ACHIEVEMENT_SEED_DATA:
        if data["title"] in existing:
            continue
        db.add(Achievement(**data, created_by=created_by, is_active=True, created_at=now, updated_at=now))
        inserted += 1
    await db.flush()
    logger.info("Seeded %d achievements", inserted)
    return inserted


async def seed_events(db: AsyncSession, created_by: int) -> int:
    """Insert demo events relative to today. Returns the number inserted."""
    existing = set((await db.execute(select(Event.title))).scalars().all())
    now = datetime.now(timezone.utc)
    inserted = 0
    for title, description, event_type, points, department, days, status in EVENT_SEED_DATA:
        if title in existing:
            continue
        db.add(Event(
            title=title,
            description=description,
            type=event_type,
            points=points,
            department=department,
            date=now + timedelta(days=days),
            status=status,
            created_by=created_by,
            is_active=True,
            created_at=now,
            updated_at=now,
        ))
        inserted += 1
    await db.flush()
    logger.info("Seeded %d events", inserted)
    return inserted


async def seed_database(db: AsyncSession) -> None:
    admin, _students = await seed_users(db)
    await seed_achievements(db, admin.id)
    await seed_events(db, admin.id)
    await db.commit()


async def main() -> None:
    settings = get_settings()
    await init_db(settings.database_url)
    try:
        async for db in get_session():
            await seed_database(db)
            break
    finally:
        await close_db()
    logger.info("Demo credentials: admin@mce.edu / admin123, student@mce.edu / demo123")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    asyncio.run(main())
