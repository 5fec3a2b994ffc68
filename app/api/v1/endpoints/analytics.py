import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import aget_db
from app.core.security import get_current_host
from app.models.event import Feedback, Rsvp
from app.models.invitation import Invitation
from app.models.registration import Registration
from app.models.user import User
from app.schemas.analyticsSchema import EventAnalyticsResponse, EventFunnelResponse, FunnelSummary
from app.utils.analytics.event_stats import (
    feedback_per_hour,
    feedback_types,
    sentiment_split,
    top_emojis,
    top_keywords,
)
from app.utils.analytics.funnel import build_funnel_report, percent
from app.utils.check_event_host import get_owned_event

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/analytics", tags=["analytics"])


async def _count(db: AsyncSession, stmt) -> int:
    return (await db.execute(stmt)).scalar_one()


async def load_funnel_summary(db: AsyncSession, event_id: int) -> FunnelSummary:
    """Stage counts for one event, straight from the participation tables."""
    invited = await _count(db, select(func.count()).select_from(Invitation).where(Invitation.event_id == event_id))
    registered = await _count(
        db, select(func.count()).select_from(Registration).where(Registration.event_id == event_id)
    )
    checked_in = await _count(
        db, select(func.count()).select_from(Rsvp).where(Rsvp.event_id == event_id, Rsvp.checked_in.is_(True))
    )
    completed = await _count(
        db, select(func.count(func.distinct(Feedback.user_id))).where(Feedback.event_id == event_id)
    )
    return FunnelSummary(invited=invited, registered=registered, checked_in=checked_in, completed=completed)


@router.get("/{event_id}", response_model=EventAnalyticsResponse)
async def get_event_analytics(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_host),
):
    """
    Dashboard numbers for one event: attendance, feedback volume per hour,
    top emojis and keywords, and a rough sentiment split.
    """
    event = await get_owned_event(event_id, db, current_user)

    if not event.start_time or not event.end_time:
        raise HTTPException(status_code=400, detail="startTime and endTime required")

    try:
        rsvps = (await db.execute(select(Rsvp).where(Rsvp.event_id == event_id))).scalars().all()
        feedbacks = (
            await db.execute(select(Feedback).where(Feedback.event_id == event_id).order_by(Feedback.created_at))
        ).scalars().all()

        total_rsvps = len(rsvps)
        total_check_ins = sum(1 for r in rsvps if r.checked_in)

        return EventAnalyticsResponse(
            event_id=event.id,
            event_title=event.title,
            total_rsvps=total_rsvps,
            total_check_ins=total_check_ins,
            feedback_count=len(feedbacks),
            engagement_rate=percent(total_check_ins, total_rsvps) or 0,
            feedback_per_hour=feedback_per_hour(feedbacks, event.start_time, event.end_time),
            top_emojis=top_emojis(feedbacks),
            top_keywords=top_keywords(feedbacks),
            feedback_types=feedback_types(feedbacks),
            sentiment=sentiment_split(feedbacks),
            generated_at=datetime.utcnow(),
        )
    except Exception as e:
        logger.error(f"Analytics error for event {event_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build analytics")


@router.get("/{event_id}/funnel", response_model=EventFunnelResponse)
async def get_event_funnel(
    event_id: int,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_host),
):
    await get_owned_event(event_id, db, current_user)
    summary = await load_funnel_summary(db, event_id)
    return EventFunnelResponse(event_id=event_id, summary=summary, report=build_funnel_report(summary))
