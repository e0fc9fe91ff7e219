from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional

from app.core.timeutil import to_naive_utc
from app.schemas.user import UserSummary


class SkillSummary(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    hourly_rate: Optional[float] = None

    class Config:
        from_attributes = True


# --- CREATE ---
# required fields are checked by the service so a missing one yields "Missing required fields"
class MeetingCreate(BaseModel):
    conversation_id: Optional[int] = None
    invitee_id: Optional[int] = None
    skill_id: Optional[int] = None
    meeting_location: Optional[str] = None
    meeting_date: Optional[datetime] = None
    meeting_duration: Optional[int] = Field(default=None, description="Minutes, defaults to 60")
    inviter_message: Optional[str] = None

    @field_validator("meeting_date")
    @classmethod
    def normalize_date(cls, v):
        return to_naive_utc(v) if v is not None else v


# --- UPDATE (either participant) ---
class MeetingUpdate(BaseModel):
    status: Optional[str] = Field(
        default=None,
        description="Allowed values: accepted, denied, started, completed, cancelled"
    )
    invitee_response: Optional[str] = None


# --- RESPONSE ---
class MeetingOfferResponse(BaseModel):
    id: int
    conversation_id: int
    inviter_id: int
    invitee_id: int
    skill_id: int
    meeting_location: str
    meeting_date: datetime
    meeting_duration: int
    inviter_message: Optional[str] = None
    status: str
    invitee_response: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    skill: Optional[SkillSummary] = None
    inviter: Optional[UserSummary] = None
    invitee: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class OfferListItem(MeetingOfferResponse):
    other_user: Optional[UserSummary] = None
    is_inviter: bool
    currency_amount: float = 0
    currency_type: str = "earned"


class OfferStats(BaseModel):
    total: int = 0
    pending: int = 0
    accepted: int = 0
    completed: int = 0
    denied: int = 0
    started: int = 0
    cancelled: int = 0
    totalEarned: float = 0
    totalSpent: float = 0
    totalHours: float = 0


class ExpiredOfferItem(BaseModel):
    id: int
    meeting_date: datetime
    status: str
    inviter_id: int
    invitee_id: int
    skill: Optional[SkillSummary] = None
    inviter: Optional[UserSummary] = None
    invitee: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class SweepResponse(BaseModel):
    message: str
    expiredCount: int
    expiredIds: List[int] = []
    updatedOffers: List[ExpiredOfferItem] = []


class ExpiredCheckResponse(BaseModel):
    message: str
    expiredCount: int
    expiredOffers: List[ExpiredOfferItem] = []
