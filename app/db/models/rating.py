# app/db/models/rating.py
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.timeutil import utcnow
from app.db.base import Base


class MeetingRating(Base):
    __tablename__ = "meeting_ratings"
    __table_args__ = (
        UniqueConstraint("meeting_id", "rater_id", "rated_user_id", name="uq_meeting_ratings_triple"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_meeting_ratings_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    meeting_id = Column(Integer, ForeignKey("meeting_offers.id", ondelete="CASCADE"), nullable=False)
    rater_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rated_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    rating = Column(Integer, nullable=False)   # 1..5
    comment = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow)

    meeting = relationship("MeetingOffer", back_populates="ratings")
    rater = relationship("User", foreign_keys=[rater_id], lazy="joined")
    rated_user = relationship("User", foreign_keys=[rated_user_id], lazy="joined")
