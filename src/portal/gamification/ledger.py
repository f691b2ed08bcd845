"""Points and level bookkeeping.

A user's level is a pure function of their total points. Every change to
``total_points`` goes through :func:`apply_points` so the stored level can
never disagree with the formula.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from portal.db.models import User

POINTS_PER_LEVEL = 200


def compute_level(total_points: int) -> int:
    """Level for a points total: every 200 points is one level, starting at 1."""
    return total_points // POINTS_PER_LEVEL + 1


def level_progress(total_points: int) -> dict:
    """Level plus how far the user is into it."""
    level = compute_level(total_points)
    level_floor = (level - 1) * POINTS_PER_LEVEL
    return {
        "level": level,
        "points_into_level": total_points - level_floor,
        "points_for_level": POINTS_PER_LEVEL,
        "next_level": level + 1,
    }


def apply_points(user: User, delta: int) -> int:
    """Add ``delta`` (may be negative) to the user's total and recompute the level.

    Returns the new total. No floor is applied.
    """
    user.total_points = (user.total_points or 0) + delta
    user.level = compute_level(user.total_points)
    return user.total_points


def sync_level(user: User) -> int:
    """Recompute the stored level from the current total."""
    user.level = compute_level(user.total_points or 0)
    return user.level
