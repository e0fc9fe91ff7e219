# app/db/models/meeting.py
import enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.core.timeutil import utcnow
from app.db.base import Base


class OfferStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DENIED = "denied"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({OfferStatus.DENIED, OfferStatus.COMPLETED, OfferStatus.CANCELLED})


class MeetingOffer(Base):
    """
    A proposed teach/learn session between two users of a conversation.
    The inviter proposes; only the invitee may accept or deny.
    """
    __tablename__ = "meeting_offers"
    __table_args__ = (
        CheckConstraint("inviter_id <> invitee_id", name="ck_meeting_offers_distinct_participants"),
        CheckConstraint("meeting_duration > 0", name="ck_meeting_offers_positive_duration"),
    )

    id = Column(Integer, primary_key=True, index=True)

    conversation_id = Column(Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False)
    inviter_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    invitee_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    skill_id = Column(Integer, ForeignKey("skills.id"), nullable=False)

    meeting_location = Column(String, nullable=False)
    meeting_date = Column(DateTime, nullable=False, index=True)
    meeting_duration = Column(Integer, nullable=False, default=60)  # minutes
    inviter_message = Column(String, nullable=True)

    status = Column(String, nullable=False, default=OfferStatus.PENDING.value, index=True)
    invitee_response = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # relationships
    skill = relationship("Skill", foreign_keys=[skill_id], lazy="joined")
    inviter = relationship("User", foreign_keys=[inviter_id], lazy="joined")
    invitee = relationship("User", foreign_keys=[invitee_id], lazy="joined")
    ratings = relationship("MeetingRating", back_populates="meeting", cascade="all, delete-orphan", passive_deletes=True)
    reports = relationship("MeetingReport", back_populates="meeting", cascade="all, delete-orphan", passive_deletes=True)

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.inviter_id, self.invitee_id)

    def other_participant(self, user_id: int) -> int:
        return self.invitee_id if self.inviter_id == user_id else self.inviter_id
