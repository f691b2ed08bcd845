"""Achievement eligibility evaluation.

Pure functions over value objects; nothing here touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from portal.db.models import Achievement

POINTS = "points"
EVENTS = "events"
STREAK = "streak"
CUSTOM = "custom"

# Requirement kinds that can be stored but have no evaluation rule yet.
UNSUPPORTED_KINDS = frozenset({STREAK, CUSTOM})


@dataclass(frozen=True)
class UserStats:
    """Aggregate numbers an achievement requirement can be checked against."""

    total_points: int
    events_participated: int


@dataclass(frozen=True)
class Requirement:
    """Tagged requirement descriptor: ``kind`` selects which field matters."""

    kind: str
    value: int | None = None
    description: str | None = None

    @classmethod
    def from_achievement(cls, achievement: Achievement) -> Requirement:
        return cls(
            kind=achievement.requirement_type,
            value=achievement.requirement_value,
            description=achievement.requirement_description,
        )


def is_eligible(stats: UserStats, requirement: Requirement, *, active: bool = True) -> bool:
    """Return True if ``stats`` satisfy ``requirement``.

    Inactive achievements never qualify. ``streak`` and ``custom`` are
    always False, as is any kind this module does not know.
    """
    if not active:
        return False

    if requirement.kind in UNSUPPORTED_KINDS:
        return False

    if requirement.value is None:
        return False

    if requirement.kind == POINTS:
        return stats.total_points >= requirement.value
    if requirement.kind == EVENTS:
        return stats.events_participated >= requirement.value

    return False


def achievement_is_eligible(stats: UserStats, achievement: Achievement) -> bool:
    """Convenience wrapper evaluating an ORM achievement."""
    return is_eligible(stats, Requirement.from_achievement(achievement), active=achievement.is_active)
