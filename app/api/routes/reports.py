# app/api/routes/reports.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core import config
from app.core.rate_limit import rate_limit
from app.core.security import get_current_user
from app.db.base import get_db
from app.db.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.feedback import ReportCreate, ReportResponse
from app.services import feedback

router = APIRouter(prefix="/meetings/reports", tags=["reports"])


# Participant reports the other participant of a completed meeting
@router.post(
    "",
    response_model=ApiResponse[ReportResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("submit_report", config.RATE_LIMIT_SUBMIT_REPORT))],
)
def create_report(payload: ReportCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    report = feedback.submit_report(
        db,
        reporter_id=current_user.id,
        meeting_id=payload.meeting_id,
        reported_user_id=payload.reported_user_id,
        report_category=payload.report_category,
        report_reason=payload.report_reason,
        description=payload.description,
    )
    return success(ReportResponse.model_validate(report), "Report submitted successfully")


# Moderators see every report; other users only those they filed or received
@router.get("", response_model=ApiResponse[List[ReportResponse]])
def list_reports(
    meeting_id: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None, description="reported user"),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = feedback.list_reports(
        db,
        meeting_id=meeting_id,
        user_id=user_id,
        status=status,
        visible_to=None if current_user.is_moderator else current_user.id,
    )
    return success([ReportResponse.model_validate(r) for r in rows])
