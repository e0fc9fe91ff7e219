"""
Expired offer sweep runner
Run from cron or any scheduler: python run_offer_sweep.py [--user-id ID]
"""

import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from app.db.base import SessionLocal
from app.db.init_db import init_db
from app.services.expiration import sweep_expired_offers

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def run_sweep(user_id=None) -> int:
    init_db()
    db = SessionLocal()
    try:
        result = sweep_expired_offers(db, user_id=user_id)
    finally:
        db.close()
    logger.info(f"Expired {result.expired_count} offers: {result.offer_ids}")
    return result.expired_count


if __name__ == "__main__":
    user_id = None
    if len(sys.argv) == 3 and sys.argv[1] == "--user-id":
        user_id = int(sys.argv[2])
    elif len(sys.argv) != 1:
        logger.error("Usage: python run_offer_sweep.py [--user-id ID]")
        sys.exit(2)

    try:
        run_sweep(user_id)
    except Exception as e:
        logger.error(f"Offer sweep failed: {e}")
        sys.exit(1)
