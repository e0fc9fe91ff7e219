# app/db/models/notification.py
from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String

from app.core.timeutil import utcnow
from app.db.base import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    data = Column(JSON, nullable=True)
    status = Column(String, nullable=False, default="unread")  # unread / read

    created_at = Column(DateTime, default=utcnow)
