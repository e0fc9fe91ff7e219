from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.security import get_current_user
from app.db.base import get_db
from app.db.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.feedback import NotificationResponse
from app.services.notifications import list_notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=ApiResponse[List[NotificationResponse]])
def my_notifications(
    status: Optional[str] = Query(None, description="unread/read"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = list_notifications(db, current_user.id, status)
    return success([NotificationResponse.model_validate(n) for n in rows])
