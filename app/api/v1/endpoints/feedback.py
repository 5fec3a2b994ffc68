import logging
from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import aget_db
from app.core.security import get_current_user
from app.models.event import Event, Feedback
from app.models.user import User
from app.schemas.eventSchema import FeedbackCreate, FeedbackResponse
from app.utils.check_event_host import get_event_or_404, get_owned_event, is_event_host

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/feedback", tags=["feedback"])


def is_live(event: Event, now: datetime) -> bool:
    if not event.start_time or not event.end_time:
        return False
    return event.start_time <= now <= event.end_time


async def get_hosted_feedback(db: AsyncSession, feedback_id: int, current_user: User) -> Feedback:
    feedback = await db.get(Feedback, feedback_id)
    if not feedback:
        raise HTTPException(status_code=404, detail="Feedback not found")
    event = await db.get(Event, feedback.event_id)
    if not event or not is_event_host(current_user, event):
        raise HTTPException(status_code=403, detail="Unauthorized")
    return feedback


@router.post("/", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    payload: FeedbackCreate,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """Live feedback (text, emoji or both) while the event is running."""
    content = (payload.content or "").strip() or None
    if not content and not payload.emoji:
        raise HTTPException(status_code=400, detail="Event ID and content or emoji are required")

    event = await get_event_or_404(payload.event_id, db)
    if not is_live(event, datetime.utcnow()):
        raise HTTPException(status_code=400, detail="Feedback can only be submitted during the event")

    try:
        feedback = Feedback(
            user_id=current_user.id,
            event_id=event.id,
            content=content,
            emoji=payload.emoji,
        )
        db.add(feedback)
        await db.commit()
        await db.refresh(feedback)
    except Exception as e:
        await db.rollback()
        logger.error(f"Feedback creation error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to submit feedback")

    logger.info(f"💬 Feedback #{feedback.id} on event #{event.id} from user {current_user.id}")
    return feedback


@router.get("/event/{event_id}", response_model=List[FeedbackResponse])
async def list_event_feedback(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    """Pinned feedback first, then newest first."""
    await get_owned_event(event_id, db, current_user)
    result = await db.execute(
        select(Feedback)
        .where(Feedback.event_id == event_id)
        .order_by(Feedback.is_pinned.desc(), Feedback.created_at.desc(), Feedback.id.desc())
    )
    return result.scalars().all()


@router.put("/{feedback_id}/pin", response_model=FeedbackResponse)
async def toggle_pin(
    feedback_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    feedback = await get_hosted_feedback(db, feedback_id, current_user)
    feedback.is_pinned = not feedback.is_pinned
    await db.commit()
    await db.refresh(feedback)
    logger.info(f"📌 Feedback #{feedback_id} pinned={feedback.is_pinned}")
    return feedback


@router.put("/{feedback_id}/flag", response_model=FeedbackResponse)
async def toggle_flag(
    feedback_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    feedback = await get_hosted_feedback(db, feedback_id, current_user)
    feedback.is_flagged = not feedback.is_flagged
    await db.commit()
    await db.refresh(feedback)
    logger.info(f"🚩 Feedback #{feedback_id} flagged={feedback.is_flagged}")
    return feedback
