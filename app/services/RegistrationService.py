"""Shared registration steps used by the registration, waiting list and invitation routes."""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.constants.constants import RegistrationStatus, WaitingListStatus
from app.models.event import Rsvp
from app.models.registration import Participant, Registration, WaitingList

logger = logging.getLogger(__name__)


async def ensure_rsvp(db: AsyncSession, user_id: int, event_id: int) -> Rsvp:
    result = await db.execute(select(Rsvp).where(Rsvp.user_id == user_id, Rsvp.event_id == event_id))
    rsvp = result.scalar_one_or_none()
    if rsvp is None:
        rsvp = Rsvp(user_id=user_id, event_id=event_id)
        db.add(rsvp)
        await db.flush()
        logger.info(f"✅ Auto-created RSVP for user {user_id} on event {event_id}")
    return rsvp


async def registration_exists(db: AsyncSession, user_id: int, event_id: int) -> bool:
    result = await db.execute(
        select(Registration.id).where(Registration.user_id == user_id, Registration.event_id == event_id)
    )
    return result.first() is not None


async def pending_waiting_entry(db: AsyncSession, user_id: int, event_id: int) -> Optional[WaitingList]:
    result = await db.execute(
        select(WaitingList).where(
            WaitingList.user_id == user_id,
            WaitingList.event_id == event_id,
            WaitingList.status == WaitingListStatus.waiting,
        )
    )
    return result.scalars().first()


async def create_registration(
    db: AsyncSession,
    user_id: int,
    event_id: int,
    participants: Iterable[dict] = (),
    team_name: Optional[str] = None,
    payment_proof: Optional[str] = None,
) -> Registration:
    """Add an approved registration and its participants; the caller commits."""
    registration = Registration(
        user_id=user_id,
        event_id=event_id,
        team_name=team_name,
        payment_proof=payment_proof,
        status=RegistrationStatus.approved,
    )
    db.add(registration)
    await db.flush()
    add_participants(db, registration.id, participants)
    await db.flush()
    return registration


def add_participants(db: AsyncSession, registration_id: int, participants: Iterable[dict]) -> List[Participant]:
    rows = [
        Participant(
            registration_id=registration_id,
            name=p["name"],
            email=p.get("email"),
            phone=p.get("phone"),
        )
        for p in participants
    ]
    db.add_all(rows)
    return rows


async def promote_waiting_entry(db: AsyncSession, entry: WaitingList) -> Registration:
    """
    Turn a waiting list entry into a registration.

    Team name, payment proof and participants move over, the entry is marked
    promoted and the user gets an RSVP. The caller commits.
    """
    registration = await create_registration(
        db,
        user_id=entry.user_id,
        event_id=entry.event_id,
        participants=entry.participants or [],
        team_name=entry.team_name,
        payment_proof=entry.payment_proof,
    )
    entry.status = WaitingListStatus.promoted
    await ensure_rsvp(db, entry.user_id, entry.event_id)
    logger.info(
        f"📊 Waiting list #{entry.id} promoted to registration #{registration.id} "
        f"({len(entry.participants or [])} participants, payment proof: {bool(entry.payment_proof)})"
    )
    return registration


async def load_registration(db: AsyncSession, registration_id: int) -> Registration:
    result = await db.execute(
        select(Registration)
        .options(selectinload(Registration.participants))
        .where(Registration.id == registration_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()
