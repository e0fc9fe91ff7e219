# app/db/models/conversation.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from app.core.timeutil import utcnow
from app.db.base import Base


class Conversation(Base):
    """Two-user messaging thread. Meeting offers originate from one."""

    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, index=True)
    user1_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user2_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    created_at = Column(DateTime, default=utcnow)

    user1 = relationship("User", foreign_keys=[user1_id])
    user2 = relationship("User", foreign_keys=[user2_id])

    def has_member(self, user_id: int) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def other_member(self, user_id: int) -> int:
        return self.user2_id if self.user1_id == user_id else self.user1_id
