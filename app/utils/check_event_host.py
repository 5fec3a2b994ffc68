from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event
from app.models.user import User


def is_event_host(user: User, event: Event) -> bool:
    """Check if user is the host who created the event."""
    return event.host_id == user.id


async def get_event_or_404(event_id: int, db: AsyncSession) -> Event:
    event = await db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


async def get_owned_event(event_id: int, db: AsyncSession, user: User) -> Event:
    event = await get_event_or_404(event_id, db)
    if not is_event_host(user, event):
        raise HTTPException(status_code=403, detail="Unauthorized")
    return event
