"""Event queries and admin CRUD."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import Select, func, or_, select

from portal.db.models import ALL_DEPARTMENTS, Event, EventParticipation
from portal.errors import BadRequestError, NotFoundError
from portal.events.participation import as_utc, refresh_status

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def _department_filter(department: str):  # noqa: ANN202
    return or_(Event.department == department, Event.department == ALL_DEPARTMENTS)


def events_query(
    department: str | None = None,
    event_type: str | None = None,
    status: str | None = None,
) -> Select:  # type: ignore[type-arg]
    """Active events, soonest first. A department filter also matches campus-wide events."""
    query = select(Event).where(Event.is_active.is_(True))
    if department:
        query = query.where(_department_filter(department))
    if event_type:
        query = query.where(Event.type == event_type)
    if status:
        query = query.where(Event.status == status)
    return query.order_by(Event.date.asc(), Event.id.asc())


async def get_upcoming_events(db: AsyncSession, limit: int = 10) -> list[Event]:
    now = datetime.now(timezone.utc)
    result = await db.execute(
        select(Event)
        .where(Event.is_active.is_(True), Event.status == "upcoming", Event.date >= now)
        .order_by(Event.date.asc(), Event.id.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_department_events(db: AsyncSession, department: str, status: str | None = None) -> list[Event]:
    result = await db.execute(events_query(department=department, status=status))
    return list(result.scalars().all())


async def participant_counts(db: AsyncSession, event_ids: list[int]) -> dict[int, int]:
    """Participant count per event id, for list responses."""
    if not event_ids:
        return {}
    result = await db.execute(
        select(EventParticipation.event_id, func.count())
        .where(EventParticipation.event_id.in_(event_ids))
        .group_by(EventParticipation.event_id)
    )
    return {event_id: count for event_id, count in result.all()}


async def get_event(db: AsyncSession, event_id: int, *, include_inactive: bool = False) -> Event:
    """Fetch an event or raise NotFoundError."""
    query = select(Event).where(Event.id == event_id)
    if not include_inactive:
        query = query.where(Event.is_active.is_(True))
    event = (await db.execute(query)).scalar_one_or_none()
    if event is None:
        msg = "Event not found"
        raise NotFoundError(msg)
    return event


async def get_participants(db: AsyncSession, event_id: int) -> list[EventParticipation]:
    """Participations of an event with the user joined, in join order."""
    result = await db.execute(
        select(EventParticipation)
        .where(EventParticipation.event_id == event_id)
        .order_by(EventParticipation.participated_at.asc(), EventParticipation.id.asc())
    )
    return list(result.scalars().unique().all())


async def create_event(db: AsyncSession, *, created_by: int, **fields: Any) -> Event:
    """Create an event. The date must not be in the past."""
    now = datetime.now(timezone.utc)
    fields["date"] = as_utc(fields["date"]).astimezone(timezone.utc)
    if fields["date"] < now:
        msg = "Event date cannot be in the past"
        raise BadRequestError(msg)

    event = Event(
        **fields,
        status="upcoming",
        created_by=created_by,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.add(event)
    await db.flush()
    logger.info("event_created", event_id=event.id, created_by=created_by, points=event.points)
    return event


async def update_event(db: AsyncSession, event_id: int, changes: dict[str, Any]) -> Event:
    """Apply a partial update and re-evaluate the lazy status transition."""
    event = await get_event(db, event_id, include_inactive=True)
    if "date" in changes:
        changes["date"] = as_utc(changes["date"]).astimezone(timezone.utc)
    for field, value in changes.items():
        setattr(event, field, value)

    now = datetime.now(timezone.utc)
    refresh_status(event, now)
    event.updated_at = now
    await db.flush()
    logger.info("event_updated", event_id=event.id, fields=sorted(changes))
    return event


async def deactivate_event(db: AsyncSession, event_id: int) -> Event:
    """Soft-delete an event; participations are kept."""
    event = await get_event(db, event_id, include_inactive=True)
    event.is_active = False
    event.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("event_deleted", event_id=event.id)
    return event
