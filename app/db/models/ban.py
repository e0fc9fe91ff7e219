# app/db/models/ban.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.core.timeutil import utcnow
from app.db.base import Base


class UserBanStatus(Base):
    """
    One row per user, upserted by moderation actions.
    expires_at NULL means the ban is permanent.
    """
    __tablename__ = "user_ban_status"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    is_banned = Column(Boolean, nullable=False, default=False)
    ban_reason = Column(String, nullable=True)
    banned_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="ban_status")
