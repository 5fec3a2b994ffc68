import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import aget_db
from app.core.security import get_current_user
from app.models.reference import College
from app.models.user import User
from app.schemas.authSchema import CurrentUserResponse, ProfileUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=CurrentUserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=CurrentUserResponse)
async def update_profile(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(aget_db),
    current_user: User = Depends(get_current_user)
):
    user_id = current_user.id
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("college_id") is not None and not await db.get(College, changes["college_id"]):
        raise HTTPException(status_code=404, detail="College not found")

    for field, value in changes.items():
        setattr(current_user, field, value)

    try:
        await db.commit()
        await db.refresh(current_user)
    except Exception as e:
        await db.rollback()
        logger.error(f"Profile update error for user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update profile")

    logger.info(f"👤 Profile updated for user {current_user.id}")
    return current_user
