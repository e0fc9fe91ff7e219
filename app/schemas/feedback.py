# app/schemas/feedback.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from app.schemas.user import UserSummary


class RatingCreate(BaseModel):
    meeting_id: Optional[int] = None
    rated_user_id: Optional[int] = None
    rating: Optional[int] = Field(default=None, description="Rating 1-5")
    comment: Optional[str] = None


class RatingResponse(BaseModel):
    id: int
    meeting_id: int
    rater_id: int
    rated_user_id: int
    rating: int
    comment: Optional[str]
    created_at: datetime
    rater: Optional[UserSummary] = None
    rated_user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class RatingSummary(BaseModel):
    averageRating: float
    totalRatings: int
    recentRatings: List[RatingResponse]


class ReportCreate(BaseModel):
    meeting_id: Optional[int] = None
    reported_user_id: Optional[int] = None
    report_category: Optional[str] = Field(default=None, description="easy, medium or hard")
    report_reason: Optional[str] = None
    description: Optional[str] = None


class ReportResponse(BaseModel):
    id: int
    meeting_id: int
    reporter_id: int
    reported_user_id: int
    report_category: str
    report_reason: str
    description: Optional[str]
    status: str
    moderator_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    reporter: Optional[UserSummary] = None
    reported_user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class ViolationCounts(BaseModel):
    easy: int = 0
    medium: int = 0
    hard: int = 0
    total: int = 0


class BanStatusResponse(BaseModel):
    user_id: int
    is_banned: bool
    ban_reason: Optional[str] = None
    banned_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    violation_counts: ViolationCounts
    thresholds: Dict[str, int]
    thresholds_reached: Dict[str, bool]
    ban_eligible: bool


class BanStatusUpdate(BaseModel):
    user_id: int
    is_banned: bool
    ban_reason: Optional[str] = None
    expires_at: Optional[datetime] = None


class ModerationActionRequest(BaseModel):
    action: str = Field(..., description="dismiss, resolve or ban")
    reason: Optional[str] = None


class ModerationActionResponse(BaseModel):
    report_id: int
    action: str
    report_status: str
    banned_user_id: Optional[int] = None


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    data: Optional[dict] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
