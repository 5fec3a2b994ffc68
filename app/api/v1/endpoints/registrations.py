import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import aget_db
from app.core.security import get_current_user
from app.models.event import Event
from app.models.registration import Registration, WaitingList
from app.models.user import User
from app.schemas.registrationSchema import (
    ParticipantsAdd,
    RegistrationCheck,
    RegistrationCreate,
    RegistrationResponse,
    RegistrationResult,
    WaitingListResponse,
)
from app.services.RegistrationService import (
    add_participants,
    create_registration,
    ensure_rsvp,
    load_registration,
    pending_waiting_entry,
    registration_exists,
)
from app.utils.check_event_host import get_event_or_404, get_owned_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/registrations", tags=["registrations"])


async def join_waiting_list(db: AsyncSession, event: Event, payload: RegistrationCreate, user: User) -> WaitingList:
    if await pending_waiting_entry(db, user.id, event.id):
        raise HTTPException(status_code=400, detail="Already on the waiting list for this event")

    entry = WaitingList(
        user_id=user.id,
        event_id=event.id,
        team_name=payload.team_name,
        participants=[p.model_dump() for p in payload.participants],
        payment_proof=payload.payment_proof,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)

    logger.info(f"⏳ User {user.id} added to waiting list #{entry.id} for event #{event.id}")
    return entry


@router.post("/", response_model=RegistrationResult, response_model_exclude_none=True,
             status_code=status.HTTP_201_CREATED)
async def register_for_event(
    payload: RegistrationCreate,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """
    Register for an event.

    Paid events go through host review, so the request lands on the waiting
    list. Free events are approved on the spot and the user is RSVP'd.
    """
    event = await get_event_or_404(payload.event_id, db)

    if await registration_exists(db, current_user.id, event.id):
        raise HTTPException(status_code=400, detail="Already registered for this event")

    if event.is_paid:
        entry = await join_waiting_list(db, event, payload, current_user)
        return RegistrationResult(
            message="Added to waiting list",
            waiting_list=WaitingListResponse.model_validate(entry),
        )

    try:
        registration = await create_registration(
            db,
            user_id=current_user.id,
            event_id=event.id,
            participants=[p.model_dump() for p in payload.participants],
            team_name=payload.team_name,
            payment_proof=payload.payment_proof,
        )
        await ensure_rsvp(db, current_user.id, event.id)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Registration error for event #{event.id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to register for event")

    logger.info(f"📝 User {current_user.id} registered for event #{event.id}")
    registration = await load_registration(db, registration.id)
    return RegistrationResult(
        message="Registration successful",
        registration=RegistrationResponse.model_validate(registration),
    )


@router.post("/waiting-list", response_model=WaitingListResponse, status_code=status.HTTP_201_CREATED)
async def add_to_waiting_list(
    payload: RegistrationCreate,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """Join the waiting list directly, for free events that are full."""
    event = await get_event_or_404(payload.event_id, db)
    if await registration_exists(db, current_user.id, event.id):
        raise HTTPException(status_code=400, detail="Already registered for this event")
    return await join_waiting_list(db, event, payload, current_user)


@router.post("/{registration_id}/participants", response_model=RegistrationResponse)
async def add_registration_participants(
    registration_id: int,
    payload: ParticipantsAdd,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    registration = await db.get(Registration, registration_id)
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")
    if registration.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not allowed to modify this registration")

    add_participants(db, registration.id, [p.model_dump() for p in payload.participants])
    await db.commit()

    logger.info(f"👥 {len(payload.participants)} participants added to registration #{registration_id}")
    return await load_registration(db, registration_id)


@router.get("/", response_model=List[RegistrationResponse])
async def list_registrations(
    event_id: int = Query(..., alias="eventId"),
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    await get_owned_event(event_id, db, current_user)
    result = await db.execute(
        select(Registration)
        .options(selectinload(Registration.participants))
        .where(Registration.event_id == event_id)
        .order_by(Registration.created_at)
    )
    return result.scalars().all()


@router.get("/{event_id}/check", response_model=RegistrationCheck)
async def check_registration(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    return RegistrationCheck(registered=await registration_exists(db, current_user.id, event_id))
