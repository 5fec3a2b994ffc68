from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.constants.constants import InvitationStatus


class InvitationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: int = Field(..., alias="eventId")
    emails: List[EmailStr] = Field(..., min_length=1)


class InvitationResponse(BaseModel):
    id: int
    event_id: int
    email: str
    status: InvitationStatus
    invited_by_id: int
    invited_user_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InvitationActionResponse(BaseModel):
    message: str
    invitation: InvitationResponse
