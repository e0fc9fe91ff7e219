# app/api/routes/meetings.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core import config
from app.core.rate_limit import rate_limit
from app.core.security import get_current_user
from app.db.base import get_db
from app.db.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.meeting import MeetingCreate, MeetingOfferResponse, MeetingUpdate
from app.services import offers as offer_service

router = APIRouter(prefix="/meetings", tags=["meetings"])


# Inviter proposes a meeting to the other member of a conversation

@router.post(
    "",
    response_model=ApiResponse[MeetingOfferResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("create_offer", config.RATE_LIMIT_CREATE_OFFER))],
)
def create_meeting(
    payload: MeetingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    offer = offer_service.create_offer(
        db,
        inviter_id=current_user.id,
        invitee_id=payload.invitee_id,
        skill_id=payload.skill_id,
        conversation_id=payload.conversation_id,
        meeting_location=payload.meeting_location,
        meeting_date=payload.meeting_date,
        meeting_duration=payload.meeting_duration,
        inviter_message=payload.inviter_message,
    )
    return success(MeetingOfferResponse.model_validate(offer), "Meeting invitation sent successfully")


# Offers of one conversation, or all of the caller's offers

@router.get("", response_model=ApiResponse[List[MeetingOfferResponse]])
def list_meetings(
    conversation_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if conversation_id:
        rows = offer_service.list_offers_for_conversation(db, conversation_id, current_user.id)
    else:
        rows = offer_service.list_offers_for_user(db, current_user.id)
    return success([MeetingOfferResponse.model_validate(r) for r in rows])


@router.get("/{meeting_id:int}", response_model=ApiResponse[MeetingOfferResponse])
def get_meeting(
    meeting_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    offer = offer_service.get_offer_for_participant(db, meeting_id, current_user.id)
    return success(MeetingOfferResponse.model_validate(offer))


# Either participant moves the offer along; accept/deny is invitee only

@router.patch("/{meeting_id:int}", response_model=ApiResponse[MeetingOfferResponse])
def update_meeting(
    meeting_id: int,
    payload: MeetingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    offer = offer_service.transition_offer(
        db,
        meeting_id,
        current_user.id,
        payload.status,
        invitee_response=payload.invitee_response,
    )
    return success(MeetingOfferResponse.model_validate(offer), f"Meeting {offer.status} successfully")


# Inviter withdraws the invitation entirely

@router.delete("/{meeting_id:int}", response_model=ApiResponse[None])
def delete_meeting(
    meeting_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    offer_service.delete_offer(db, meeting_id, current_user.id)
    return success(None, "Meeting invitation deleted successfully")
