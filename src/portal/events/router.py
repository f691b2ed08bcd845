"""Event router: listing, admin CRUD, participation and point awards."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.dependencies import get_current_user, require_admin
from portal.database import get_session
from portal.db.models import EVENT_STATUSES, EVENT_TYPES, Event, User
from portal.events.participation import award_points, join_event, leave_event
from portal.events.schemas import (
    AwardedAchievement,
    AwardPointsRequest,
    AwardPointsResponse,
    EventCreateRequest,
    EventDetail,
    EventResponse,
    EventUpdateRequest,
    LeaveResponse,
    ParticipantResponse,
    ParticipateResponse,
)
from portal.events.service import (
    create_event,
    deactivate_event,
    events_query,
    get_department_events,
    get_event,
    get_participants,
    get_upcoming_events,
    participant_counts,
    update_event,
)
from portal.pagination import MAX_LIMIT, PageParams, page_params, paginate
from portal.schemas import DataResponse, ListResponse, MessageResponse, PageResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/events", tags=["Events"])

_TYPE_PATTERN = f"^({'|'.join(EVENT_TYPES)})$"
_STATUS_PATTERN = f"^({'|'.join(EVENT_STATUSES)})$"


async def _with_counts(db: AsyncSession, events: list[Event]) -> list[EventResponse]:
    counts = await participant_counts(db, [e.id for e in events])
    return [
        EventResponse.model_validate(e).model_copy(update={"participant_count": counts.get(e.id, 0)})
        for e in events
    ]


@router.get("", response_model=PageResponse[EventResponse])
async def list_events(
    department: str | None = Query(None),
    type: str | None = Query(None, pattern=_TYPE_PATTERN),  # noqa: A002
    status: str | None = Query(None, pattern=_STATUS_PATTERN),
    params: PageParams = Depends(page_params),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Paginated active events ordered by date."""
    page = await paginate(db, events_query(department=department, event_type=type, status=status), params)
    return page.envelope(await _with_counts(db, page.items))


@router.get("/upcoming", response_model=ListResponse[EventResponse])
async def upcoming_events(
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ListResponse[EventResponse]:
    events = await get_upcoming_events(db, limit=limit)
    data = await _with_counts(db, events)
    return ListResponse[EventResponse](count=len(data), data=data)


@router.get("/department/{department}", response_model=ListResponse[EventResponse])
async def department_events(
    department: str,
    status: str | None = Query(None, pattern=_STATUS_PATTERN),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ListResponse[EventResponse]:
    """Events for one department, including campus-wide ones."""
    events = await get_department_events(db, department, status=status)
    data = await _with_counts(db, events)
    return ListResponse[EventResponse](count=len(data), data=data)


@router.get("/{event_id}", response_model=DataResponse[EventDetail])
async def get_event_detail(
    event_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> DataResponse[EventDetail]:
    """A single event with its participants."""
    event = await get_event(db, event_id)
    participations = await get_participants(db, event.id)
    participants = [
        ParticipantResponse(
            user_id=p.user_id,
            name=p.user.name,
            student_id=p.user.student_id,
            department=p.user.department,
            points_earned=p.points_earned,
            participated_at=p.participated_at,
        )
        for p in participations
    ]
    detail = EventDetail(
        **EventResponse.model_validate(event).model_dump(exclude={"participant_count"}),
        participant_count=len(participants),
        participants=participants,
    )
    return DataResponse[EventDetail](data=detail)


@router.post("", response_model=DataResponse[EventResponse], status_code=201)
async def create_new_event(
    body: EventCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DataResponse[EventResponse]:
    event = await create_event(db, created_by=admin.id, **body.model_dump())
    await db.commit()
    return DataResponse[EventResponse](message="Event created successfully", data=EventResponse.model_validate(event))


@router.put("/{event_id}", response_model=DataResponse[EventResponse])
async def update_existing_event(
    event_id: int,
    body: EventUpdateRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> DataResponse[EventResponse]:
    """Partial update; only fields present in the body change."""
    event = await update_event(db, event_id, body.model_dump(exclude_unset=True))
    await db.commit()
    data = (await _with_counts(db, [event]))[0]
    return DataResponse[EventResponse](message="Event updated successfully", data=data)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: int,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await deactivate_event(db, event_id)
    await db.commit()
    return MessageResponse(message="Event deleted successfully")


@router.post("/{event_id}/participate", response_model=ParticipateResponse)
async def participate(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ParticipateResponse:
    participation = await join_event(db, event_id, user)
    logger.info("participation_joined", event_id=event_id, user_id=user.id)
    return ParticipateResponse(
        message="Successfully participated in event",
        points_earned=participation.points_earned,
    )


@router.delete("/{event_id}/participate", response_model=LeaveResponse)
async def leave(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> LeaveResponse:
    points_removed = await leave_event(db, event_id, user)
    logger.info("participation_left", event_id=event_id, user_id=user.id)
    return LeaveResponse(message="Participation removed successfully", points_removed=points_removed)


@router.post("/{event_id}/award-points", response_model=AwardPointsResponse)
async def award_event_points(
    event_id: int,
    body: AwardPointsRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> AwardPointsResponse:
    """Credit a user for an event with an admin-chosen amount."""
    result = await award_points(db, event_id, body.user_id, body.points)
    logger.info("points_awarded", event_id=event_id, user_id=body.user_id, points=body.points, by=admin.id)
    return AwardPointsResponse(
        message="Points awarded successfully",
        points_awarded=result.participation.points_earned,
        new_level=result.user.level,
        new_achievements=[
            AwardedAchievement(id=a.id, title=a.title, description=a.description, points=a.points)
            for a in result.new_achievements
        ],
    )
