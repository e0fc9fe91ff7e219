"""
Ratings and reports submitted after a meeting is completed.

Each participant may rate and report the other participant once per meeting.
The uniqueness is checked up front for a clear error and enforced again by
the table's unique constraint, which wins any race between two requests.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import config
from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.db.models.meeting import MeetingOffer, OfferStatus
from app.db.models.rating import MeetingRating
from app.db.models.report import MeetingReport, ReportCategory, ReportStatus
from app.services import gamification, moderation, notifications

logger = logging.getLogger(__name__)

POSITIVE_RATING = 4

FEEDBACK_MESSAGES = {
    "rating": ("Can only rate completed meetings", "Invalid rated user"),
    "report": ("Can only report on completed meetings", "Invalid reported user"),
}


def _completed_meeting_for(db: Session, meeting_id: int, user_id: int, counterpart_id: int, kind: str) -> MeetingOffer:
    """Load the meeting and check that ``user_id`` may give ``kind`` feedback on ``counterpart_id``."""
    not_completed, wrong_counterpart = FEEDBACK_MESSAGES[kind]
    meeting = db.query(MeetingOffer).filter(MeetingOffer.id == meeting_id).first()
    if not meeting:
        raise NotFoundError("Meeting not found")

    if meeting.status != OfferStatus.COMPLETED.value:
        raise ValidationError(not_completed)

    if not meeting.is_participant(user_id):
        raise ForbiddenError("Access denied to this meeting")

    if meeting.other_participant(user_id) != counterpart_id:
        raise ValidationError(wrong_counterpart)
    return meeting


def _rating_exists(db: Session, meeting_id: int, rater_id: int, rated_user_id: int) -> bool:
    return db.query(MeetingRating.id).filter(
        MeetingRating.meeting_id == meeting_id,
        MeetingRating.rater_id == rater_id,
        MeetingRating.rated_user_id == rated_user_id,
    ).first() is not None


def _report_exists(db: Session, meeting_id: int, reporter_id: int, reported_user_id: int) -> bool:
    return db.query(MeetingReport.id).filter(
        MeetingReport.meeting_id == meeting_id,
        MeetingReport.reporter_id == reporter_id,
        MeetingReport.reported_user_id == reported_user_id,
    ).first() is not None


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    return text.strip() or None


# --------------------------
# Ratings
# --------------------------
def submit_rating(
    db: Session,
    rater_id: int,
    meeting_id: Optional[int],
    rated_user_id: Optional[int],
    rating: Optional[int],
    comment: Optional[str] = None,
) -> MeetingRating:
    if not meeting_id or not rated_user_id or rating is None:
        raise ValidationError("Missing required fields")

    _completed_meeting_for(db, meeting_id, rater_id, rated_user_id, "rating")

    if rating < 1 or rating > 5:
        raise ValidationError("Rating must be between 1 and 5")

    if _rating_exists(db, meeting_id, rater_id, rated_user_id):
        raise ValidationError("Rating already exists for this meeting")

    row = MeetingRating(
        meeting_id=meeting_id,
        rater_id=rater_id,
        rated_user_id=rated_user_id,
        rating=rating,
        comment=_clean(comment),
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Rating already exists for this meeting")
    db.refresh(row)

    logger.info(f"Rating {row.id} ({rating}/5) on meeting {meeting_id}: {rater_id} -> {rated_user_id}")

    if rating >= POSITIVE_RATING:
        gamification.award_xp(db, rated_user_id, config.XP_POSITIVE_FEEDBACK, "receive_positive_feedback")
    return row


def list_ratings(db: Session, meeting_id: Optional[int] = None, user_id: Optional[int] = None) -> List[MeetingRating]:
    q = db.query(MeetingRating)
    if meeting_id:
        q = q.filter(MeetingRating.meeting_id == meeting_id)
    if user_id:
        q = q.filter(MeetingRating.rated_user_id == user_id)
    return q.order_by(MeetingRating.created_at.desc(), MeetingRating.id.desc()).all()


def get_rating_summary(db: Session, user_id: int, recent: int = 5) -> dict:
    rows = list_ratings(db, user_id=user_id)
    total = len(rows)
    average = sum(r.rating for r in rows) / total if total else 0.0
    return {
        "averageRating": round(average, 2),
        "totalRatings": total,
        "recentRatings": rows[:recent],
    }


# --------------------------
# Reports
# --------------------------
def submit_report(
    db: Session,
    reporter_id: int,
    meeting_id: Optional[int],
    reported_user_id: Optional[int],
    report_category: Optional[str],
    report_reason: Optional[str],
    description: Optional[str] = None,
) -> MeetingReport:
    if not meeting_id or not reported_user_id or not report_category or not _clean(report_reason):
        raise ValidationError("Missing required fields")

    try:
        category = ReportCategory(report_category)
    except ValueError:
        raise ValidationError("Invalid report category")

    if reporter_id == reported_user_id:
        raise ValidationError("Cannot report yourself")

    _completed_meeting_for(db, meeting_id, reporter_id, reported_user_id, "report")

    if _report_exists(db, meeting_id, reporter_id, reported_user_id):
        raise ValidationError("Report already exists for this meeting")

    report = MeetingReport(
        meeting_id=meeting_id,
        reporter_id=reporter_id,
        reported_user_id=reported_user_id,
        report_category=category.value,
        report_reason=_clean(report_reason),
        description=_clean(description),
        status=ReportStatus.PENDING.value,
    )
    db.add(report)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Report already exists for this meeting")
    db.refresh(report)

    logger.info(
        f"Report {report.id} ({category.value}) on meeting {meeting_id}: {reporter_id} -> {reported_user_id}"
    )

    notifications.notify_moderators(db, report)
    if config.AUTO_BAN_ENABLED:
        # the report is already stored; a failed auto-ban is only logged
        try:
            moderation.enforce_thresholds(db, reported_user_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Auto-ban check failed for user {reported_user_id} after report on meeting {meeting_id}: {e}")
    return report


def list_reports(
    db: Session,
    meeting_id: Optional[int] = None,
    user_id: Optional[int] = None,
    status: Optional[str] = None,
    visible_to: Optional[int] = None,
) -> List[MeetingReport]:
    """``visible_to`` restricts the result to reports that user filed or received."""
    q = db.query(MeetingReport)
    if meeting_id:
        q = q.filter(MeetingReport.meeting_id == meeting_id)
    if user_id:
        q = q.filter(MeetingReport.reported_user_id == user_id)
    if status and status != "all":
        try:
            parsed = ReportStatus(status)
        except ValueError:
            raise ValidationError("Invalid status")
        q = q.filter(MeetingReport.status == parsed.value)
    if visible_to is not None:
        q = q.filter(
            (MeetingReport.reporter_id == visible_to) | (MeetingReport.reported_user_id == visible_to)
        )
    return q.order_by(MeetingReport.created_at.desc(), MeetingReport.id.desc()).all()
