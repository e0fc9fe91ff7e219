"""
Reconciliation of stale meeting invitations.

A pending offer whose meeting_date has passed can no longer be answered, so it
is moved to ``denied``. The sweep is a single conditional batch update, safe to
run repeatedly: once everything stale is denied it reports zero changes.
It runs either explicitly (POST /offers/expire, run_offer_sweep.py) or
opportunistically before a user lists their offers.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.timeutil import utcnow
from app.db.models.meeting import MeetingOffer, OfferStatus

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    expired_count: int = 0
    offer_ids: List[int] = field(default_factory=list)


def _expired_query(db: Session, now: datetime, user_id: Optional[int] = None):
    q = db.query(MeetingOffer).filter(
        MeetingOffer.status == OfferStatus.PENDING.value,
        MeetingOffer.meeting_date < now,
    )
    if user_id is not None:
        q = q.filter(or_(MeetingOffer.inviter_id == user_id, MeetingOffer.invitee_id == user_id))
    return q


def find_expired_offers(db: Session, user_id: Optional[int] = None, now: Optional[datetime] = None) -> List[MeetingOffer]:
    now = now or utcnow()
    return _expired_query(db, now, user_id).order_by(MeetingOffer.meeting_date.asc()).all()


def sweep_expired_offers(db: Session, user_id: Optional[int] = None, now: Optional[datetime] = None) -> SweepResult:
    now = now or utcnow()

    ids = [row.id for row in _expired_query(db, now, user_id).with_entities(MeetingOffer.id).all()]
    if not ids:
        return SweepResult()

    # status stays in the filter so rows answered since the select are left alone
    updated = (
        db.query(MeetingOffer)
        .filter(MeetingOffer.id.in_(ids), MeetingOffer.status == OfferStatus.PENDING.value)
        .update(
            {"status": OfferStatus.DENIED.value, "updated_at": now},
            synchronize_session=False,
        )
    )
    db.commit()

    if updated != len(ids):
        # some rows changed concurrently; report only what this sweep denied
        ids = [
            row.id
            for row in db.query(MeetingOffer.id)
            .filter(
                MeetingOffer.id.in_(ids),
                MeetingOffer.status == OfferStatus.DENIED.value,
                MeetingOffer.updated_at == now,
            )
            .all()
        ]

    logger.info(f"Expired {updated} pending meeting offers" + (f" for user {user_id}" if user_id else ""))
    return SweepResult(expired_count=updated, offer_ids=ids)


def reconcile_before_read(db: Session, user_id: int) -> Optional[SweepResult]:
    """Sweep the user's own offers ahead of a read. Never raises."""
    try:
        return sweep_expired_offers(db, user_id=user_id)
    except Exception as e:
        db.rollback()
        logger.warning(f"Failed to expire outdated offers for user {user_id}: {e}")
        return None
