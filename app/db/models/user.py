# app/db/models/user.py
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.core.timeutil import utcnow
from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    # user / moderator / admin
    role = Column(String, nullable=False, default="user", server_default="user")

    avatar_url = Column(String, nullable=True)
    xp = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(DateTime, default=utcnow)

    ban_status = relationship("UserBanStatus", back_populates="user", uselist=False, lazy="selectin")

    @property
    def is_moderator(self) -> bool:
        return self.role in ("moderator", "admin")
