# app/api/routes/offers.py
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core import config
from app.core.rate_limit import rate_limit
from app.core.security import get_current_user
from app.db.base import get_db
from app.db.models.meeting import MeetingOffer
from app.db.models.user import User
from app.schemas.common import ApiResponse, success
from app.schemas.meeting import (
    ExpiredCheckResponse,
    ExpiredOfferItem,
    MeetingOfferResponse,
    OfferListItem,
    OfferStats,
    SweepResponse,
)
from app.services import expiration, offers as offer_service
from app.services.stats import compute_user_offer_stats, offer_currency

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/offers", tags=["offers"])


def _list_item(offer: MeetingOffer, user_id: int) -> OfferListItem:
    base = MeetingOfferResponse.model_validate(offer)
    is_inviter = offer.inviter_id == user_id
    amount, currency_type = offer_currency(offer, user_id)
    return OfferListItem(
        **base.model_dump(),
        other_user=base.invitee if is_inviter else base.inviter,
        is_inviter=is_inviter,
        currency_amount=amount,
        currency_type=currency_type,
    )


# Caller's offers; stale pending offers are expired first

@router.get("", response_model=ApiResponse[List[OfferListItem]])
def list_my_offers(
    status: Optional[str] = Query(None, description="pending/accepted/denied/started/completed/cancelled/all"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    swept = expiration.reconcile_before_read(db, current_user.id)
    if swept and swept.expired_count:
        logger.info(f"Expired {swept.expired_count} offers before listing for user {current_user.id}")

    rows = offer_service.list_offers_for_user(db, current_user.id, status)
    return success([_list_item(o, current_user.id) for o in rows])


@router.get("/stats", response_model=ApiResponse[OfferStats])
def my_offer_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = offer_service.list_offers_for_user(db, current_user.id)
    return success(OfferStats(**compute_user_offer_stats(rows, current_user.id)))


# Explicit sweep, safe to call repeatedly or from a scheduler

@router.post(
    "/expire",
    response_model=ApiResponse[SweepResponse],
    dependencies=[Depends(rate_limit("expire_offers", config.RATE_LIMIT_SWEEP))],
)
def expire_offers(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    result = expiration.sweep_expired_offers(db)
    if not result.expired_count:
        return success(SweepResponse(message="No expired offers found", expiredCount=0))

    updated = db.query(MeetingOffer).filter(MeetingOffer.id.in_(result.offer_ids)).all()
    return success(
        SweepResponse(
            message=f"Successfully expired {result.expired_count} offers",
            expiredCount=result.expired_count,
            expiredIds=result.offer_ids,
            updatedOffers=[ExpiredOfferItem.model_validate(o) for o in updated],
        )
    )


# Read-only check for monitoring

@router.get("/expire", response_model=ApiResponse[ExpiredCheckResponse])
def check_expired_offers(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = expiration.find_expired_offers(db)
    return success(
        ExpiredCheckResponse(
            message=f"Found {len(rows)} expired offers",
            expiredCount=len(rows),
            expiredOffers=[ExpiredOfferItem.model_validate(o) for o in rows],
        )
    )
