"""
Participation coordinator.

Joining, leaving, admin point awards and achievement checks each run as a
single database transaction: the participation row and the user's
points/level change together or not at all. The event and user rows are
locked for the duration so concurrent requests for the same pair serialize;
the unique constraints on participations and earned achievements catch
anything that slips through.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from portal.db.models import Achievement, Event, EventParticipation, User
from portal.errors import BadRequestError, ConflictError, NotFoundError
from portal.gamification.ledger import apply_points
from portal.gamification.sweep import sweep_achievements

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

OPEN_STATUSES = frozenset({"upcoming", "ongoing"})


@dataclass
class AwardResult:
    participation: EventParticipation
    user: User
    new_achievements: list[Achievement] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pure rules
# ---------------------------------------------------------------------------


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as some drivers return them) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def refresh_status(event: Event, now: datetime) -> bool:
    """Move an upcoming event whose date has passed to ``completed``.

    Returns True if the status changed.
    """
    if event.status == "upcoming" and as_utc(event.date) <= now:
        event.status = "completed"
        return True
    return False


def can_participate(event: Event, participant_ids: Collection[int], user_id: int) -> bool:
    """Whether ``user_id`` may join ``event`` given its current participants."""
    if not event.is_active or event.status not in OPEN_STATUSES:
        return False
    if user_id in participant_ids:
        return False
    if event.max_participants is not None and len(participant_ids) >= event.max_participants:
        return False
    return True


# ---------------------------------------------------------------------------
# Locked loads
# ---------------------------------------------------------------------------


async def _lock_event(db: AsyncSession, event_id: int, *, active_only: bool) -> Event:
    query = select(Event).where(Event.id == event_id)
    if active_only:
        query = query.where(Event.is_active.is_(True))
    query = query.with_for_update().execution_options(populate_existing=True)
    event = (await db.execute(query)).scalar_one_or_none()
    if event is None:
        msg = "Event not found"
        raise NotFoundError(msg)
    return event


async def _lock_user(db: AsyncSession, user_id: int, *, active_only: bool = False) -> User:
    query = select(User).where(User.id == user_id)
    if active_only:
        query = query.where(User.is_active.is_(True))
    query = query.with_for_update().execution_options(populate_existing=True)
    user = (await db.execute(query)).scalar_one_or_none()
    if user is None:
        msg = "User not found"
        raise NotFoundError(msg)
    return user


async def _participant_ids(db: AsyncSession, event_id: int) -> set[int]:
    result = await db.execute(
        select(EventParticipation.user_id).where(EventParticipation.event_id == event_id)
    )
    return set(result.scalars().all())


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def join_event(db: AsyncSession, event_id: int, user: User) -> EventParticipation:
    """Add ``user`` to the event and credit the event's points.

    Raises:
        NotFoundError: The event does not exist or is inactive.
        ConflictError: The event is closed, full, or the user already joined.
    """
    event = await _lock_event(db, event_id, active_only=True)
    user = await _lock_user(db, user.id)
    now = datetime.now(timezone.utc)
    refresh_status(event, now)

    participant_ids = await _participant_ids(db, event.id)
    if not can_participate(event, participant_ids, user.id):
        await db.rollback()
        msg = "Cannot participate in this event"
        raise ConflictError(msg)

    participation = EventParticipation(
        event_id=event.id,
        user_id=user.id,
        points_earned=event.points,
        participated_at=now,
    )
    db.add(participation)
    apply_points(user, event.points)
    user.updated_at = now

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        msg = "Cannot participate in this event"
        raise ConflictError(msg) from e

    logger.info(
        "User %s joined event %s for %d points (total %d, level %d)",
        user.id, event.id, participation.points_earned, user.total_points, user.level,
    )
    return participation


async def leave_event(db: AsyncSession, event_id: int, user: User) -> int:
    """Remove the user's participation and take back the points it earned.

    Returns the points removed: the amount recorded at join time, not the
    event's current value.

    Raises:
        NotFoundError: The event does not exist.
        BadRequestError: The user is not participating.
    """
    event = await _lock_event(db, event_id, active_only=False)
    user = await _lock_user(db, user.id)
    now = datetime.now(timezone.utc)
    refresh_status(event, now)

    participation = (
        await db.execute(
            select(EventParticipation).where(
                EventParticipation.event_id == event.id,
                EventParticipation.user_id == user.id,
            )
        )
    ).unique().scalar_one_or_none()
    if participation is None:
        await db.rollback()
        msg = "User is not participating in this event"
        raise BadRequestError(msg)

    points_removed = participation.points_earned
    await db.delete(participation)
    apply_points(user, -points_removed)
    user.updated_at = now

    await db.commit()
    logger.info(
        "User %s left event %s, %d points removed (total %d, level %d)",
        user.id, event.id, points_removed, user.total_points, user.level,
    )
    return points_removed


async def award_points(db: AsyncSession, event_id: int, user_id: int, points: int) -> AwardResult:
    """Record a participation with an admin-chosen amount, then sweep achievements.

    Raises:
        NotFoundError: The event or the (active) user does not exist.
        ConflictError: The user already participates in the event.
    """
    event = await _lock_event(db, event_id, active_only=False)
    user = await _lock_user(db, user_id, active_only=True)
    now = datetime.now(timezone.utc)
    refresh_status(event, now)

    if user.id in await _participant_ids(db, event.id):
        await db.rollback()
        msg = "User is already participating in this event"
        raise ConflictError(msg)

    participation = EventParticipation(
        event_id=event.id,
        user_id=user.id,
        points_earned=points,
        participated_at=now,
    )
    db.add(participation)
    apply_points(user, points)
    user.updated_at = now

    try:
        await db.flush()
        new_achievements = await sweep_achievements(db, user)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        msg = "User is already participating in this event"
        raise ConflictError(msg) from e

    logger.info(
        "Awarded %d points to user %s for event %s (%d new achievements)",
        points, user.id, event.id, len(new_achievements),
    )
    return AwardResult(participation=participation, user=user, new_achievements=new_achievements)


async def check_achievements(db: AsyncSession, user_id: int) -> list[Achievement]:
    """Sweep achievements for a user under a row lock on the user.

    The user is re-read inside the lock so rewards are added to the committed
    total, not to a copy loaded earlier in the request.

    Raises:
        NotFoundError: The user does not exist.
        ConflictError: A concurrent sweep awarded the same achievement first.
    """
    user = await _lock_user(db, user_id)
    try:
        awarded = await sweep_achievements(db, user)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        msg = "Achievements are already being checked for this user"
        raise ConflictError(msg) from e

    logger.info("Checked achievements for user %s: %d awarded", user.id, len(awarded))
    return awarded
