# app/api/routes/users.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.core.security import get_current_user, require_moderator
from app.core.timeutil import to_naive_utc
from app.db.base import get_db
from app.db.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.feedback import BanStatusResponse, BanStatusUpdate, RatingResponse, RatingSummary
from app.services import feedback, moderation

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/ban-status", response_model=ApiResponse[BanStatusResponse])
def ban_status(
    user_id: Optional[int] = Query(None, description="defaults to the caller"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return success(BanStatusResponse(**moderation.get_ban_status(db, user_id or current_user.id)))


@router.patch("/ban-status", response_model=ApiResponse[BanStatusResponse])
def update_ban_status(
    payload: BanStatusUpdate,
    db: Session = Depends(get_db),
    moderator: User = Depends(require_moderator),
):
    moderation.set_ban_status(
        db,
        payload.user_id,
        payload.is_banned,
        ban_reason=payload.ban_reason,
        expires_at=to_naive_utc(payload.expires_at) if payload.expires_at else None,
    )
    return success(BanStatusResponse(**moderation.get_ban_status(db, payload.user_id)), "Ban status updated successfully")


@router.get("/ratings", response_model=ApiResponse[RatingSummary])
def rating_summary(
    user_id: Optional[int] = Query(None, description="defaults to the caller"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    summary = feedback.get_rating_summary(db, user_id or current_user.id)
    summary["recentRatings"] = [RatingResponse.model_validate(r) for r in summary["recentRatings"]]
    return success(RatingSummary(**summary))
