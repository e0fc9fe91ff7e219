"""Violation ledger, ban status and moderator actions on meeting reports."""

import enum
import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core import config
from app.core.errors import NotFoundError, ValidationError
from app.core.timeutil import utcnow
from app.db.models.ban import UserBanStatus
from app.db.models.report import MeetingReport, ReportCategory, ReportStatus
from app.db.models.user import User

logger = logging.getLogger(__name__)


def get_violation_counts(db: Session, user_id: int) -> dict:
    """Reports received by the user per category. Dismissed reports do not count."""
    rows = (
        db.query(MeetingReport.report_category, func.count(MeetingReport.id))
        .filter(
            MeetingReport.reported_user_id == user_id,
            MeetingReport.status != ReportStatus.DISMISSED.value,
        )
        .group_by(MeetingReport.report_category)
        .all()
    )
    counts = {c.value: 0 for c in ReportCategory}
    for category, count in rows:
        counts[category] = int(count)
    counts["total"] = sum(counts[c.value] for c in ReportCategory)
    return counts


def thresholds_reached(counts: dict) -> Dict[str, bool]:
    return {category: counts.get(category, 0) >= limit for category, limit in config.BAN_THRESHOLDS.items()}


def _is_active(ban: Optional[UserBanStatus], now: datetime) -> bool:
    if ban is None or not ban.is_banned:
        return False
    return ban.expires_at is None or ban.expires_at > now


def get_ban_status(db: Session, user_id: int, now: Optional[datetime] = None) -> dict:
    """Read-only view combining the stored ban record with the violation ledger."""
    now = now or utcnow()
    if not db.query(User.id).filter(User.id == user_id).first():
        raise NotFoundError("User not found")

    ban = db.query(UserBanStatus).filter(UserBanStatus.user_id == user_id).first()
    counts = get_violation_counts(db, user_id)
    reached = thresholds_reached(counts)
    active = _is_active(ban, now)

    return {
        "user_id": user_id,
        "is_banned": active,
        "ban_reason": ban.ban_reason if active else None,
        "banned_at": ban.banned_at if active else None,
        "expires_at": ban.expires_at if active else None,
        "violation_counts": counts,
        "thresholds": dict(config.BAN_THRESHOLDS),
        "thresholds_reached": reached,
        "ban_eligible": any(reached.values()),
    }


def set_ban_status(
    db: Session,
    user_id: int,
    is_banned: bool,
    ban_reason: Optional[str] = None,
    expires_at: Optional[datetime] = None,
) -> UserBanStatus:
    """Upsert the user's single ban record."""
    if not db.query(User.id).filter(User.id == user_id).first():
        raise NotFoundError("User not found")

    now = utcnow()
    ban = db.query(UserBanStatus).filter(UserBanStatus.user_id == user_id).first()
    if ban is None:
        ban = UserBanStatus(user_id=user_id)
        db.add(ban)

    ban.is_banned = is_banned
    ban.updated_at = now
    if is_banned:
        ban.ban_reason = ban_reason or ban.ban_reason
        ban.banned_at = now
        ban.expires_at = expires_at
    else:
        ban.ban_reason = None
        ban.banned_at = None
        ban.expires_at = None

    db.commit()
    db.refresh(ban)
    logger.info(f"Ban status for user {user_id} set to is_banned={is_banned}")
    return ban


def enforce_thresholds(db: Session, user_id: int) -> bool:
    """Ban the user if any category crossed its threshold. Returns True when a ban was applied."""
    counts = get_violation_counts(db, user_id)
    reached = [category for category, hit in thresholds_reached(counts).items() if hit]
    if not reached:
        return False

    ban = db.query(UserBanStatus).filter(UserBanStatus.user_id == user_id).first()
    if _is_active(ban, utcnow()):
        return False

    set_ban_status(db, user_id, True, f"Violation threshold reached: {', '.join(reached)}")
    logger.warning(f"User {user_id} automatically banned: thresholds reached for {reached}")
    return True


# --------------------------
# Moderator actions on meeting reports
# --------------------------
class ModerationAction(str, enum.Enum):
    DISMISS = "dismiss"
    RESOLVE = "resolve"
    BAN = "ban"


def _dismiss(db: Session, report: MeetingReport, reason: Optional[str]) -> Optional[int]:
    report.status = ReportStatus.DISMISSED.value
    return None


def _resolve(db: Session, report: MeetingReport, reason: Optional[str]) -> Optional[int]:
    report.status = ReportStatus.RESOLVED.value
    return None


def _ban_reported_user(db: Session, report: MeetingReport, reason: Optional[str]) -> Optional[int]:
    report.status = ReportStatus.RESOLVED.value
    set_ban_status(db, report.reported_user_id, True, reason or f"Meeting report {report.id}: {report.report_reason}")
    return report.reported_user_id


# one handler per action; returns the id of a user banned by the action, if any
ACTION_HANDLERS: Dict[ModerationAction, Callable[[Session, MeetingReport, Optional[str]], Optional[int]]] = {
    ModerationAction.DISMISS: _dismiss,
    ModerationAction.RESOLVE: _resolve,
    ModerationAction.BAN: _ban_reported_user,
}


def apply_report_action(db: Session, report_id: int, moderator_id: int, action: str, reason: Optional[str] = None) -> dict:
    try:
        parsed = ModerationAction(action)
    except ValueError:
        raise ValidationError("Invalid moderation action")

    report = db.query(MeetingReport).filter(MeetingReport.id == report_id).first()
    if not report:
        raise NotFoundError("Report not found")
    if report.status != ReportStatus.PENDING.value:
        raise ValidationError("Report has already been processed")

    report.moderator_id = moderator_id
    report.moderator_notes = reason
    report.resolved_at = utcnow()
    banned_user_id = ACTION_HANDLERS[parsed](db, report, reason)
    db.commit()
    db.refresh(report)

    logger.info(f"Moderator {moderator_id} applied {parsed.value} to meeting report {report_id}")
    return {
        "report_id": report.id,
        "action": parsed.value,
        "report_status": report.status,
        "banned_user_id": banned_user_id,
    }
