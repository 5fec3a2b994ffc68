from datetime import datetime
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.constants.constants import RegistrationStatus, WaitingListStatus


class ParticipantIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)


class ParticipantResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class RegistrationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: int = Field(..., alias="eventId")
    team_name: Optional[str] = Field(default=None, max_length=255, alias="teamName")
    participants: List[ParticipantIn] = []
    payment_proof: Optional[str] = Field(default=None, alias="paymentProof")


class ParticipantsAdd(BaseModel):
    participants: List[ParticipantIn] = Field(..., min_length=1)


class RegistrationResponse(BaseModel):
    id: int
    user_id: int
    event_id: int
    team_name: Optional[str] = None
    status: RegistrationStatus
    payment_proof: Optional[str] = None
    created_at: datetime
    participants: List[ParticipantResponse] = []

    class Config:
        from_attributes = True


class WaitingListResponse(BaseModel):
    id: int
    user_id: int
    event_id: int
    team_name: Optional[str] = None
    participants: Optional[List[dict]] = None
    status: WaitingListStatus
    payment_proof: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RegistrationResult(BaseModel):
    """Either a confirmed registration or, for paid events, a waiting list entry."""

    message: str
    registration: Optional[RegistrationResponse] = None
    waiting_list: Optional[WaitingListResponse] = None


class RegistrationCheck(BaseModel):
    registered: bool


class WaitingListCheck(BaseModel):
    on_waiting_list: bool


class WaitingListStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    pending_percentage: int
    approved_percentage: int
    rejected_percentage: int


class BulkActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: str
    waiting_ids: List[int] = Field(..., min_length=1, alias="waitingIds")


class BulkActionItem(BaseModel):
    waiting_id: int
    success: bool
    error: Optional[str] = None


class BulkActionResponse(BaseModel):
    success: bool = True
    message: str
    results: List[BulkActionItem]


ParticipationRecord = Union[RegistrationResponse, WaitingListResponse]
