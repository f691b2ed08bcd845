"""User management business logic: listing, leaderboard, profiles, admin edits."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import Select, func, select

from portal.db.models import EventParticipation, User, UserAchievement
from portal.errors import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def users_query(department: str | None = None, role: str | None = None) -> Select:  # type: ignore[type-arg]
    """Admin listing query, newest accounts first. Includes deactivated accounts."""
    query = select(User)
    if department:
        query = query.where(User.department == department)
    if role:
        query = query.where(User.role == role)
    return query.order_by(User.created_at.desc(), User.id.desc())


async def get_leaderboard(db: AsyncSession, department: str | None = None, limit: int = 10) -> list[User]:
    """Active users ordered by total points, highest first."""
    query = select(User).where(User.is_active.is_(True))
    if department:
        query = query.where(User.department == department)
    query = query.order_by(User.total_points.desc(), User.id.asc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_active_user(db: AsyncSession, user_id: int) -> User:
    """Fetch an active user or raise NotFoundError."""
    result = await db.execute(select(User).where(User.id == user_id, User.is_active.is_(True)))
    user = result.scalar_one_or_none()
    if user is None:
        msg = "User not found"
        raise NotFoundError(msg)
    return user


async def get_any_user(db: AsyncSession, user_id: int) -> User:
    """Fetch a user regardless of soft-delete state (admin paths)."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        msg = "User not found"
        raise NotFoundError(msg)
    return user


async def get_user_achievements(db: AsyncSession, user_id: int) -> list[UserAchievement]:
    """Earned achievements with the achievement joined, oldest first."""
    result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.earned_at.asc(), UserAchievement.id.asc())
    )
    return list(result.scalars().unique().all())


async def get_user_participations(db: AsyncSession, user_id: int) -> list[EventParticipation]:
    """The user's participations with the event joined, oldest first."""
    result = await db.execute(
        select(EventParticipation)
        .where(EventParticipation.user_id == user_id)
        .order_by(EventParticipation.participated_at.asc(), EventParticipation.id.asc())
    )
    return list(result.scalars().unique().all())


async def admin_update_user(
    db: AsyncSession,
    user_id: int,
    *,
    name: str | None = None,
    department: str | None = None,
    year: str | None = None,
    is_active: bool | None = None,
) -> User:
    """Apply an administrator's edits. Points and level are not editable here."""
    user = await get_any_user(db, user_id)
    if name is not None:
        user.name = name.strip()
    if department is not None:
        user.department = department
    if year is not None:
        user.year = year
    if is_active is not None:
        user.is_active = is_active
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("user_updated_by_admin", user_id=user.id)
    return user


async def deactivate_user(db: AsyncSession, user_id: int) -> User:
    """Soft-delete a user."""
    user = await get_any_user(db, user_id)
    user.is_active = False
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("user_deactivated", user_id=user.id)
    return user


async def get_user_stats(db: AsyncSession) -> dict:
    """Head counts plus per-department and per-year counts of active students."""

    async def _count(*conditions) -> int:  # noqa: ANN002
        query = select(func.count()).select_from(User)
        if conditions:
            query = query.where(*conditions)
        return (await db.execute(query)).scalar_one()

    active_students = (User.role == "student", User.is_active.is_(True))

    dept_rows = await db.execute(
        select(User.department, func.count().label("count"))
        .where(*active_students)
        .group_by(User.department)
        .order_by(func.count().desc())
    )
    year_rows = await db.execute(
        select(User.year, func.count().label("count"))
        .where(*active_students)
        .group_by(User.year)
        .order_by(User.year.asc())
    )

    return {
        "total_users": await _count(),
        "active_users": await _count(User.is_active.is_(True)),
        "students": await _count(User.role == "student"),
        "admins": await _count(User.role == "admin"),
        "department_stats": [{"key": row[0], "count": row[1]} for row in dept_rows],
        "year_stats": [{"key": row[0], "count": row[1]} for row in year_rows],
    }
