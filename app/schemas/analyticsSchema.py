from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class FunnelSummary(BaseModel):
    """Counts at each step of an event's engagement funnel."""

    model_config = ConfigDict(populate_by_name=True)

    invited: int = Field(0, ge=0)
    registered: int = Field(0, ge=0)
    checked_in: int = Field(0, ge=0, alias="checkedIn")
    completed: int = Field(0, ge=0)


class FunnelStage(BaseModel):
    name: str
    count: int
    color: str
    percentage: Optional[int]  # of invited; None when nobody was invited
    conversion_from_previous: Optional[int] = None
    width: float  # bar width relative to the largest stage


class FunnelDropOff(BaseModel):
    from_stage: str
    to_stage: str
    count: int
    percentage: Optional[int]


class FunnelReport(BaseModel):
    stages: List[FunnelStage]
    registration_rate: Optional[int]
    completion_rate: Optional[int]
    drop_offs: List[FunnelDropOff]


class EventFunnelResponse(BaseModel):
    event_id: int
    summary: FunnelSummary
    report: FunnelReport


class HourlyFeedback(BaseModel):
    hour: datetime
    count: int


class EmojiCount(BaseModel):
    emoji: str
    count: int


class KeywordCount(BaseModel):
    word: str
    count: int


class FeedbackTypeCount(BaseModel):
    type: str
    count: int
    percentage: int


class SentimentSplit(BaseModel):
    positive: int = 0
    negative: int = 0
    neutral: int = 0


class EventAnalyticsResponse(BaseModel):
    event_id: int
    event_title: str
    total_rsvps: int
    total_check_ins: int
    feedback_count: int
    engagement_rate: int
    feedback_per_hour: List[HourlyFeedback]
    top_emojis: List[EmojiCount]
    top_keywords: List[KeywordCount]
    feedback_types: List[FeedbackTypeCount]
    sentiment: SentimentSplit
    generated_at: datetime
