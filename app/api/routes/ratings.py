# app/api/routes/ratings.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core import config
from app.core.rate_limit import rate_limit
from app.core.security import get_current_user
from app.db.base import get_db
from app.db.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.feedback import RatingCreate, RatingResponse
from app.services import feedback

router = APIRouter(prefix="/meetings/ratings", tags=["ratings"])


# Participant rates the other participant of a completed meeting
@router.post(
    "",
    response_model=ApiResponse[RatingResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("submit_rating", config.RATE_LIMIT_SUBMIT_RATING))],
)
def create_rating(payload: RatingCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    row = feedback.submit_rating(
        db,
        rater_id=current_user.id,
        meeting_id=payload.meeting_id,
        rated_user_id=payload.rated_user_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    return success(RatingResponse.model_validate(row), "Rating submitted successfully")


@router.get("", response_model=ApiResponse[List[RatingResponse]])
def list_ratings(
    meeting_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None, description="rated user"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = feedback.list_ratings(db, meeting_id=meeting_id, user_id=user_id)
    return success([RatingResponse.model_validate(r) for r in rows])
