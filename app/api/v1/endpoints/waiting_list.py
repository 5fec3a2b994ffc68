import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import WaitingListStatus
from app.core.database import aget_db
from app.core.security import get_current_user
from app.models.event import Event
from app.models.notifications import RejectionNotification
from app.models.registration import WaitingList
from app.models.user import User
from app.schemas.eventSchema import MessageResponse
from app.schemas.registrationSchema import (
    BulkActionItem,
    BulkActionRequest,
    BulkActionResponse,
    RegistrationResponse,
    WaitingListCheck,
    WaitingListResponse,
    WaitingListStats,
)
from app.services.RegistrationService import load_registration, promote_waiting_entry, registration_exists
from app.utils.analytics.funnel import percent
from app.utils.check_event_host import get_owned_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/waiting-list", tags=["waiting-list"])


class EntryError(Exception):
    """A waiting list entry that cannot be processed; carries the HTTP status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


async def load_entry_for_host(db: AsyncSession, waiting_id: int, host_id: int):
    entry = await db.get(WaitingList, waiting_id)
    if not entry:
        raise EntryError(404, "Waiting list entry not found")
    event = await db.get(Event, entry.event_id)
    if not event or event.host_id != host_id:
        raise EntryError(403, "Unauthorized")
    if entry.status != WaitingListStatus.waiting:
        raise EntryError(400, "Waiting list entry has already been processed")
    return entry, event


async def approve_entry(db: AsyncSession, waiting_id: int, host_id: int):
    entry, _ = await load_entry_for_host(db, waiting_id, host_id)
    if await registration_exists(db, entry.user_id, entry.event_id):
        raise EntryError(400, "User is already registered for this event")
    return await promote_waiting_entry(db, entry)


async def reject_entry(db: AsyncSession, waiting_id: int, host_id: int) -> WaitingList:
    entry, event = await load_entry_for_host(db, waiting_id, host_id)
    entry.status = WaitingListStatus.rejected
    db.add(RejectionNotification(
        user_id=entry.user_id,
        event_id=event.id,
        message=f"Your registration for {event.title} was not approved.",
    ))
    return entry


@router.get("/{event_id}", response_model=List[WaitingListResponse])
async def list_waiting_entries(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """Entries still waiting for review, oldest first."""
    await get_owned_event(event_id, db, current_user)
    result = await db.execute(
        select(WaitingList)
        .where(WaitingList.event_id == event_id, WaitingList.status == WaitingListStatus.waiting)
        .order_by(WaitingList.created_at, WaitingList.id)
    )
    return result.scalars().all()


@router.post("/{waiting_id}/approve", response_model=RegistrationResponse)
async def approve_waiting_entry(
    waiting_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    try:
        registration = await approve_entry(db, waiting_id, current_user.id)
        await db.commit()
    except EntryError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error approving waiting list entry #{waiting_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to approve registration")

    logger.info(f"🎉 Waiting list entry #{waiting_id} approved")
    return await load_registration(db, registration.id)


@router.post("/{waiting_id}/reject", response_model=MessageResponse)
async def reject_waiting_entry(
    waiting_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    try:
        await reject_entry(db, waiting_id, current_user.id)
        await db.commit()
    except EntryError as e:
        await db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error rejecting waiting list entry #{waiting_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to reject registration")

    logger.info(f"❌ Waiting list entry #{waiting_id} rejected")
    return MessageResponse(message="Registration rejected successfully")


@router.get("/{event_id}/stats", response_model=WaitingListStats)
async def waiting_list_stats(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    await get_owned_event(event_id, db, current_user)
    result = await db.execute(
        select(WaitingList.status, func.count())
        .where(WaitingList.event_id == event_id)
        .group_by(WaitingList.status)
    )
    counts = {status: count for status, count in result.all()}

    pending = counts.get(WaitingListStatus.waiting, 0)
    approved = counts.get(WaitingListStatus.promoted, 0)
    rejected = counts.get(WaitingListStatus.rejected, 0)
    total = pending + approved + rejected

    return WaitingListStats(
        total=total,
        pending=pending,
        approved=approved,
        rejected=rejected,
        pending_percentage=percent(pending, total) or 0,
        approved_percentage=percent(approved, total) or 0,
        rejected_percentage=percent(rejected, total) or 0,
    )


@router.post("/{event_id}/bulk-action", response_model=BulkActionResponse)
async def bulk_action(
    event_id: int,
    payload: BulkActionRequest,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """Approve or reject several entries; each entry succeeds or fails on its own."""
    if payload.action not in ("approve", "reject"):
        raise HTTPException(status_code=400, detail='Invalid action. Use "approve" or "reject"')
    await get_owned_event(event_id, db, current_user)

    # Rollbacks expire loaded rows, so keep the plain id
    host_id = current_user.id
    handler = approve_entry if payload.action == "approve" else reject_entry
    results = []
    for waiting_id in payload.waiting_ids:
        try:
            entry = await db.get(WaitingList, waiting_id)
            if not entry or entry.event_id != event_id:
                raise EntryError(404, "Invalid entry")
            await handler(db, waiting_id, host_id)
            await db.commit()
            results.append(BulkActionItem(waiting_id=waiting_id, success=True))
        except EntryError as e:
            await db.rollback()
            results.append(BulkActionItem(waiting_id=waiting_id, success=False, error=e.message))
        except Exception as e:
            await db.rollback()
            logger.error(f"Bulk {payload.action} failed for entry #{waiting_id}: {str(e)}", exc_info=True)
            results.append(BulkActionItem(waiting_id=waiting_id, success=False, error=str(e)))

    successful = sum(1 for r in results if r.success)
    verb = "approval" if payload.action == "approve" else "rejection"
    past = "approved" if payload.action == "approve" else "rejected"
    logger.info(f"📊 Bulk {verb} on event #{event_id}: {successful}/{len(results)}")
    return BulkActionResponse(
        message=f"Bulk {verb} completed: {successful} {past}, {len(results) - successful} failed",
        results=results,
    )


@router.get("/{event_id}/check", response_model=WaitingListCheck)
async def check_waiting_list(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(WaitingList.id).where(
            WaitingList.user_id == current_user.id,
            WaitingList.event_id == event_id,
            WaitingList.status == WaitingListStatus.waiting,
        )
    )
    return WaitingListCheck(on_waiting_list=result.first() is not None)
