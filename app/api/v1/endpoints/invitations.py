import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import InvitationStatus
from app.core.database import aget_db
from app.core.security import get_current_user
from app.models.invitation import Invitation
from app.models.user import User
from app.schemas.invitationSchema import InvitationActionResponse, InvitationCreate, InvitationResponse
from app.services.RegistrationService import ensure_rsvp
from app.utils.check_event_host import get_owned_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/invitations", tags=["invitations"])


async def get_own_invitation(db: AsyncSession, invitation_id: int, current_user: User) -> Invitation:
    invitation = await db.get(Invitation, invitation_id)
    if not invitation:
        raise HTTPException(status_code=404, detail="Invitation not found")
    if invitation.email.lower() != current_user.email.lower():
        raise HTTPException(status_code=403, detail="This invitation was sent to a different email address")
    return invitation


@router.post("/", response_model=List[InvitationResponse], status_code=status.HTTP_201_CREATED)
async def send_invitations(
    payload: InvitationCreate,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """
    Invite people to an event by email.
    Addresses already invited are skipped; existing accounts are linked straight away.
    """
    event = await get_owned_event(payload.event_id, db, current_user)

    existing = await db.execute(
        select(func.lower(Invitation.email)).where(Invitation.event_id == event.id)
    )
    already_invited = set(existing.scalars().all())

    created = []
    for email in payload.emails:
        email = email.lower()
        if email in already_invited:
            continue
        already_invited.add(email)

        user = (await db.execute(select(User).where(func.lower(User.email) == email))).scalar_one_or_none()
        invitation = Invitation(
            event_id=event.id,
            invited_by_id=current_user.id,
            invited_user_id=user.id if user else None,
            email=email,
        )
        db.add(invitation)
        created.append(invitation)

    try:
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Invitation error for event #{event.id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to send invitations")

    logger.info(f"📨 {len(created)} invitations sent for event #{event.id}")
    return created


@router.get("/", response_model=List[InvitationResponse])
async def my_invitations(
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(Invitation)
        .where(func.lower(Invitation.email) == current_user.email.lower())
        .order_by(Invitation.created_at.desc(), Invitation.id.desc())
    )
    return result.scalars().all()


@router.get("/event/{event_id}", response_model=List[InvitationResponse])
async def event_invitations(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    await get_owned_event(event_id, db, current_user)
    result = await db.execute(
        select(Invitation).where(Invitation.event_id == event_id).order_by(Invitation.created_at)
    )
    return result.scalars().all()


@router.patch("/{invitation_id}/accept", response_model=InvitationActionResponse)
async def accept_invitation(
    invitation_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """Accepting links the invitation to the account and RSVPs the user."""
    invitation = await get_own_invitation(db, invitation_id, current_user)
    if invitation.status == InvitationStatus.accepted:
        raise HTTPException(status_code=400, detail="Invitation already accepted")

    invitation.status = InvitationStatus.accepted
    invitation.invited_user_id = current_user.id
    await ensure_rsvp(db, current_user.id, invitation.event_id)
    await db.commit()
    await db.refresh(invitation)

    logger.info(f"✅ Invitation #{invitation_id} accepted by user {current_user.id}")
    return InvitationActionResponse(
        message="Invitation accepted", invitation=InvitationResponse.model_validate(invitation)
    )


@router.patch("/{invitation_id}/decline", response_model=InvitationActionResponse)
async def decline_invitation(
    invitation_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    invitation = await get_own_invitation(db, invitation_id, current_user)
    if invitation.status == InvitationStatus.declined:
        raise HTTPException(status_code=400, detail="Invitation already declined")

    invitation.status = InvitationStatus.declined
    invitation.invited_user_id = current_user.id
    await db.commit()
    await db.refresh(invitation)

    logger.info(f"❌ Invitation #{invitation_id} declined by user {current_user.id}")
    return InvitationActionResponse(
        message="Invitation declined", invitation=InvitationResponse.model_validate(invitation)
    )
