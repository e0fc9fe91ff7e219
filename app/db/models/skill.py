# app/db/models/skill.py
from sqlalchemy import Column, DateTime, Float, Integer, String

from app.core.timeutil import utcnow
from app.db.base import Base


class Skill(Base):
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)

    # Pricing; offers fall back to DEFAULT_HOURLY_RATE when unset
    hourly_rate = Column(Float, nullable=True)

    created_at = Column(DateTime, default=utcnow)
