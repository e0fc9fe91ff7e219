import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models.user import User

logger = logging.getLogger(__name__)


def award_xp(db: Session, user_id: int, amount: int, action: str) -> bool:
    """
    Best-effort XP grant. The operation that earned it has already been
    committed, so a failure here is logged and never raised.
    """
    if amount <= 0:
        return False
    try:
        updated = (
            db.query(User)
            .filter(User.id == user_id)
            .update({User.xp: User.xp + amount}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Failed to award {amount} xp to user {user_id} for {action}: {e}")
        return False

    if updated:
        logger.info(f"Awarded {amount} xp to user {user_id} for {action}")
    return bool(updated)
