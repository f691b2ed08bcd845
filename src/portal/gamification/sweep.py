"""Achievement sweep: award every active achievement a user newly qualifies for."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.db.models import Achievement, EventParticipation, User, UserAchievement
from portal.gamification.eligibility import UserStats, achievement_is_eligible
from portal.gamification.ledger import sync_level

logger = logging.getLogger(__name__)


async def count_participations(db: AsyncSession, user_id: int) -> int:
    """Number of events the user is currently participating in."""
    result = await db.execute(
        select(func.count()).select_from(EventParticipation).where(EventParticipation.user_id == user_id)
    )
    return result.scalar_one()


async def held_achievement_ids(db: AsyncSession, user_id: int) -> set[int]:
    """Ids of achievements the user already holds."""
    result = await db.execute(
        select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    )
    return set(result.scalars().all())


async def sweep_achievements(db: AsyncSession, user: User) -> list[Achievement]:
    """Evaluate all active achievements the user does not hold and award the qualifying ones.

    Each award adds the achievement's points to the user's running total, so
    a later points-based achievement in the same sweep sees the earlier
    rewards. The level is recomputed once at the end.

    Flushes but does not commit; the caller owns the transaction.
    Returns the newly awarded achievements in evaluation order.
    """
    result = await db.execute(
        select(Achievement).where(Achievement.is_active.is_(True)).order_by(Achievement.id)
    )
    achievements = result.scalars().all()
    if not achievements:
        return []

    held = await held_achievement_ids(db, user.id)
    events_count = await count_participations(db, user.id)
    now = datetime.now(timezone.utc)

    awarded: list[Achievement] = []
    for achievement in achievements:
        if achievement.id in held:
            continue
        stats = UserStats(total_points=user.total_points, events_participated=events_count)
        if not achievement_is_eligible(stats, achievement):
            continue

        db.add(UserAchievement(
            user_id=user.id,
            achievement_id=achievement.id,
            points_awarded=achievement.points,
            earned_at=now,
        ))
        user.total_points += achievement.points
        held.add(achievement.id)
        awarded.append(achievement)
        logger.info(
            "Awarded achievement %s (%s) to user %s for %d points",
            achievement.id, achievement.title, user.id, achievement.points,
        )

    if awarded:
        sync_level(user)
        user.updated_at = now
        await db.flush()

    return awarded
