import logging
from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import UserRole
from app.core.database import aget_db
from app.core.security import get_current_user
from app.models.event import Event, Feedback, Rsvp
from app.models.invitation import Invitation
from app.models.notifications import RejectionNotification, WhatsAppNotification
from app.models.registration import Participant, Registration, WaitingList
from app.models.user import User
from app.schemas.eventSchema import (
    EventCreate,
    EventDetailResponse,
    EventResponse,
    EventUpdate,
    RsvpResponse,
)
from app.api.v1.endpoints.uploads import discard_stored_file
from app.utils.check_event_host import get_event_or_404, get_owned_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/events", tags=["events"])

# Rows that hang off an event, children before parents
EVENT_CHILD_MODELS = [
    WhatsAppNotification,
    RejectionNotification,
    WaitingList,
    Registration,
    Invitation,
    Feedback,
    Rsvp,
]


async def get_rsvp(db: AsyncSession, user_id: int, event_id: int):
    result = await db.execute(select(Rsvp).where(Rsvp.user_id == user_id, Rsvp.event_id == event_id))
    return result.scalar_one_or_none()


async def rsvp_count(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(select(func.count()).select_from(Rsvp).where(Rsvp.event_id == event_id))
    return result.scalar_one()


@router.get("/", response_model=List[EventResponse])
async def list_my_events(
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """Events the user hosts or has RSVP'd to, soonest first."""
    rsvp_event_ids = select(Rsvp.event_id).where(Rsvp.user_id == current_user.id)
    result = await db.execute(
        select(Event)
        .where(or_(Event.host_id == current_user.id, Event.id.in_(rsvp_event_ids)))
        .order_by(Event.start_time)
    )
    return result.scalars().all()


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    try:
        event = Event(**payload.model_dump(), host_id=current_user.id)
        db.add(event)

        # Creating an event makes the user a host
        if current_user.role != UserRole.host:
            current_user.role = UserRole.host
            logger.info(f"👤 User {current_user.id} promoted to host")

        await db.commit()
        await db.refresh(event)
    except Exception as e:
        await db.rollback()
        logger.error(f"Event creation error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create event")

    logger.info(f"🎉 Event created: {event.title} (#{event.id}) by user {current_user.id}")
    return event


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """Event details with attendance counts and the caller's own RSVP state."""
    event = await get_event_or_404(event_id, db)

    checked_in_count = (await db.execute(
        select(func.count()).select_from(Rsvp).where(Rsvp.event_id == event_id, Rsvp.checked_in.is_(True))
    )).scalar_one()
    my_rsvp = await get_rsvp(db, current_user.id, event_id)

    return EventDetailResponse(
        **EventResponse.model_validate(event).model_dump(),
        rsvp_count=await rsvp_count(db, event_id),
        checked_in_count=checked_in_count,
        joined=my_rsvp is not None,
        checked_in=bool(my_rsvp and my_rsvp.checked_in),
    )


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    payload: EventUpdate,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    event = await get_owned_event(event_id, db, current_user)

    changes = payload.model_dump(exclude_unset=True)
    start = changes.get("start_time", event.start_time)
    end = changes.get("end_time", event.end_time)
    if start and end and end <= start:
        raise HTTPException(status_code=400, detail="End time must be after start time")

    for field, value in changes.items():
        setattr(event, field, value)

    try:
        await db.commit()
        await db.refresh(event)
    except Exception as e:
        await db.rollback()
        logger.error(f"Event update error for #{event_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update event")

    logger.info(f"✅ Event #{event_id} updated: {', '.join(changes) or 'no changes'}")
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    event = await get_owned_event(event_id, db, current_user)
    qr_code = event.qr_code

    try:
        registration_ids = select(Registration.id).where(Registration.event_id == event_id)
        await db.execute(delete(Participant).where(Participant.registration_id.in_(registration_ids)))
        for model in EVENT_CHILD_MODELS:
            await db.execute(delete(model).where(model.event_id == event_id))
        await db.delete(event)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Event deletion error for #{event_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete event")

    if qr_code:
        discard_stored_file(qr_code)

    logger.info(f"🗑️ Event #{event_id} deleted by user {current_user.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ------------------------------
# RSVPs and check-in
# ------------------------------
@router.post("/{event_id}/rsvp", response_model=RsvpResponse, status_code=status.HTTP_201_CREATED)
async def rsvp_to_event(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    event = await get_event_or_404(event_id, db)

    if await get_rsvp(db, current_user.id, event_id):
        raise HTTPException(status_code=400, detail="Already RSVP'd to this event")

    if event.capacity is not None and await rsvp_count(db, event_id) >= event.capacity:
        raise HTTPException(status_code=400, detail="Event is at full capacity")

    rsvp = Rsvp(user_id=current_user.id, event_id=event_id)
    db.add(rsvp)
    await db.commit()
    await db.refresh(rsvp)

    logger.info(f"✅ User {current_user.id} RSVP'd to event #{event_id}")
    return rsvp


@router.delete("/{event_id}/rsvp", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_rsvp(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    rsvp = await get_rsvp(db, current_user.id, event_id)
    if not rsvp:
        raise HTTPException(status_code=404, detail="RSVP not found")

    await db.delete(rsvp)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{event_id}/rsvps", response_model=List[RsvpResponse])
async def list_rsvps(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    await get_owned_event(event_id, db, current_user)
    result = await db.execute(select(Rsvp).where(Rsvp.event_id == event_id).order_by(Rsvp.created_at))
    return result.scalars().all()


async def mark_checked_in(db: AsyncSession, user_id: int, event_id: int) -> Rsvp:
    rsvp = await get_rsvp(db, user_id, event_id)
    if not rsvp:
        raise HTTPException(status_code=400, detail="User has not RSVP'd to this event")
    if rsvp.checked_in:
        raise HTTPException(status_code=400, detail="Already checked in")

    rsvp.checked_in = True
    rsvp.checked_in_at = datetime.utcnow()
    await db.commit()
    await db.refresh(rsvp)

    logger.info(f"📍 User {user_id} checked in to event #{event_id}")
    return rsvp


@router.post("/{event_id}/check-in", response_model=RsvpResponse)
async def check_in(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    await get_event_or_404(event_id, db)
    return await mark_checked_in(db, current_user.id, event_id)


@router.post("/{event_id}/rsvps/{user_id}/check-in", response_model=RsvpResponse)
async def check_in_attendee(
    event_id: int,
    user_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """Host checks an attendee in at the door."""
    await get_owned_event(event_id, db, current_user)
    return await mark_checked_in(db, user_id, event_id)
