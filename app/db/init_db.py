from app.db.base import Base, engine

# Import models to ensure they are registered with Base.metadata
from app.db.models import ban, conversation, meeting, notification, rating, report, skill, user  # noqa: F401


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
