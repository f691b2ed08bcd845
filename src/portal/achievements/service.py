"""Achievement catalogue queries and admin CRUD."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import Select, select

from portal.db.models import RARE_RARITIES, Achievement
from portal.errors import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def achievements_query(category: str | None = None, rarity: str | None = None) -> Select:  # type: ignore[type-arg]
    """Active achievements, most valuable first."""
    query = select(Achievement).where(Achievement.is_active.is_(True))
    if category:
        query = query.where(Achievement.category == category)
    if rarity:
        query = query.where(Achievement.rarity == rarity)
    return query.order_by(Achievement.points.desc(), Achievement.id.asc())


async def list_achievements(db: AsyncSession, category: str | None = None, rarity: str | None = None) -> list[Achievement]:
    result = await db.execute(achievements_query(category=category, rarity=rarity))
    return list(result.scalars().all())


async def get_rare_achievements(db: AsyncSession) -> list[Achievement]:
    result = await db.execute(
        achievements_query().where(Achievement.rarity.in_(RARE_RARITIES))
    )
    return list(result.scalars().all())


async def get_achievement(db: AsyncSession, achievement_id: int, *, include_inactive: bool = False) -> Achievement:
    """Fetch an achievement or raise NotFoundError."""
    query = select(Achievement).where(Achievement.id == achievement_id)
    if not include_inactive:
        query = query.where(Achievement.is_active.is_(True))
    achievement = (await db.execute(query)).scalar_one_or_none()
    if achievement is None:
        msg = "Achievement not found"
        raise NotFoundError(msg)
    return achievement


def _requirement_columns(requirements: dict[str, Any]) -> dict[str, Any]:
    return {
        "requirement_type": requirements["type"],
        "requirement_value": requirements.get("value"),
        "requirement_description": requirements.get("description"),
    }


async def create_achievement(db: AsyncSession, *, created_by: int, **fields: Any) -> Achievement:
    now = datetime.now(timezone.utc)
    requirements = fields.pop("requirements")
    achievement = Achievement(
        **fields,
        **_requirement_columns(requirements),
        created_by=created_by,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.add(achievement)
    await db.flush()
    logger.info(
        "achievement_created",
        achievement_id=achievement.id,
        requirement_type=achievement.requirement_type,
        points=achievement.points,
    )
    return achievement


async def update_achievement(db: AsyncSession, achievement_id: int, changes: dict[str, Any]) -> Achievement:
    """Apply a partial update. A new requirement replaces the old one entirely."""
    achievement = await get_achievement(db, achievement_id, include_inactive=True)
    requirements = changes.pop("requirements", None)
    if requirements is not None:
        changes.update(_requirement_columns(requirements))
    for field, value in changes.items():
        setattr(achievement, field, value)
    achievement.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("achievement_updated", achievement_id=achievement.id, fields=sorted(changes))
    return achievement


async def deactivate_achievement(db: AsyncSession, achievement_id: int) -> Achievement:
    """Soft delete. Users who already hold it keep it."""
    achievement = await get_achievement(db, achievement_id, include_inactive=True)
    achievement.is_active = False
    achievement.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("achievement_deleted", achievement_id=achievement.id)
    return achievement
