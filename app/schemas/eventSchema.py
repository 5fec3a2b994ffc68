from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Columns are naive UTC, like datetime.utcnow()
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class EventCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    location: str = Field(..., min_length=1, max_length=500)
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    capacity: Optional[int] = Field(default=None, ge=1, alias="maxAttendees")
    is_paid: bool = Field(default=False, alias="paymentEnabled")

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, value):
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_time_order(self):
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class EventUpdate(BaseModel):
    """Partial update; only the fields sent are changed."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=500)
    start_time: Optional[datetime] = Field(default=None, alias="startTime")
    end_time: Optional[datetime] = Field(default=None, alias="endTime")
    capacity: Optional[int] = Field(default=None, ge=1, alias="maxAttendees")
    is_paid: Optional[bool] = Field(default=None, alias="paymentEnabled")

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, value):
        return to_naive_utc(value)


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    capacity: Optional[int] = None
    is_paid: bool = False
    qr_code: Optional[str] = None
    host_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class EventDetailResponse(EventResponse):
    rsvp_count: int = 0
    checked_in_count: int = 0
    joined: bool = False
    checked_in: bool = False


class RsvpResponse(BaseModel):
    id: int
    user_id: int
    event_id: int
    checked_in: bool
    checked_in_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FeedbackCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: int = Field(..., alias="eventId")
    content: Optional[str] = Field(default=None, max_length=2000)
    emoji: Optional[str] = Field(default=None, max_length=32)


class FeedbackResponse(BaseModel):
    id: int
    user_id: int
    event_id: int
    content: Optional[str] = None
    emoji: Optional[str] = None
    is_pinned: bool = False
    is_flagged: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    success: bool = True
    message: str
