# app/db/models/report.py
import enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.timeutil import utcnow
from app.db.base import Base


class ReportCategory(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class MeetingReport(Base):
    __tablename__ = "meeting_reports"
    __table_args__ = (
        UniqueConstraint("meeting_id", "reporter_id", "reported_user_id", name="uq_meeting_reports_triple"),
        CheckConstraint("reporter_id <> reported_user_id", name="ck_meeting_reports_not_self"),
    )

    id = Column(Integer, primary_key=True, index=True)
    meeting_id = Column(Integer, ForeignKey("meeting_offers.id", ondelete="CASCADE"), nullable=False)
    reporter_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reported_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    report_category = Column(String, nullable=False)
    report_reason = Column(String, nullable=False)
    description = Column(String, nullable=True)

    status = Column(String, nullable=False, default=ReportStatus.PENDING.value)
    moderator_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    moderator_notes = Column(String, nullable=True)
    resolved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    meeting = relationship("MeetingOffer", back_populates="reports")
    reporter = relationship("User", foreign_keys=[reporter_id], lazy="joined")
    reported_user = relationship("User", foreign_keys=[reported_user_id], lazy="joined")
