# app/api/routes/admin.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.security import require_moderator
from app.db.base import get_db
from app.db.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.feedback import ModerationActionRequest, ModerationActionResponse, ReportResponse
from app.services import feedback, moderation

router = APIRouter(prefix="/admin", tags=["admin"])


# --------------------------------------------------
# 1. Meeting reports queue
# --------------------------------------------------
@router.get("/meeting-reports", response_model=ApiResponse[List[ReportResponse]])
def list_meeting_reports(
    status: Optional[str] = Query("pending", description="pending/resolved/dismissed"),
    user_id: Optional[int] = Query(None, description="reported user"),
    db: Session = Depends(get_db),
    moderator: User = Depends(require_moderator),
):
    rows = feedback.list_reports(db, user_id=user_id, status=status)
    return success([ReportResponse.model_validate(r) for r in rows])


# --------------------------------------------------
# 2. Dismiss / resolve / ban on a meeting report
# --------------------------------------------------
@router.post("/meeting-reports/{report_id:int}/action", response_model=ApiResponse[ModerationActionResponse])
def meeting_report_action(
    report_id: int,
    payload: ModerationActionRequest,
    db: Session = Depends(get_db),
    moderator: User = Depends(require_moderator),
):
    result = moderation.apply_report_action(db, report_id, moderator.id, payload.action, payload.reason)
    return success(ModerationActionResponse(**result), f"Report {result['report_status']}")
