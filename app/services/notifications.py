import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.db.models.notification import Notification
from app.db.models.report import MeetingReport
from app.db.models.user import User

logger = logging.getLogger(__name__)


def notify_moderators(db: Session, report: MeetingReport) -> int:
    """
    Alert every moderator and admin about a new meeting report.
    Fire-and-forget: the report is already stored, so failures are only logged.
    Returns the number of notifications created.
    """
    try:
        moderators = db.query(User.id).filter(User.role.in_(["moderator", "admin"])).all()
        if not moderators:
            logger.info(f"No moderators to notify about meeting report {report.id}")
            return 0

        for (moderator_id,) in moderators:
            db.add(
                Notification(
                    user_id=moderator_id,
                    type="meeting_report",
                    title="New Report",
                    message=f"New {report.report_category} meeting report requires review",
                    data={
                        "target_type": "meeting",
                        "target_id": report.meeting_id,
                        "report_id": report.id,
                    },
                    status="unread",
                )
            )
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to notify moderators about meeting report {report.id}: {e}")
        return 0

    logger.info(f"Notified {len(moderators)} moderators about meeting report {report.id}")
    return len(moderators)


def list_notifications(db: Session, user_id: int, status: Optional[str] = None) -> List[Notification]:
    q = db.query(Notification).filter(Notification.user_id == user_id)
    if status:
        q = q.filter(Notification.status == status)
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).all()
