from typing import Iterable, Optional, Tuple

from app.core import config
from app.db.models.meeting import MeetingOffer, OfferStatus


def hourly_rate_for(offer: MeetingOffer, default_rate: Optional[float] = None) -> float:
    rate = offer.skill.hourly_rate if offer.skill is not None else None
    if not rate:
        rate = config.DEFAULT_HOURLY_RATE if default_rate is None else default_rate
    return float(rate)


def offer_currency(offer: MeetingOffer, user_id: int, default_rate: Optional[float] = None) -> Tuple[float, str]:
    """
    Money moved by a completed offer from ``user_id``'s side.
    The inviter teaches and earns; the invitee learns and spends.
    """
    currency_type = "earned" if offer.inviter_id == user_id else "spent"
    if offer.status != OfferStatus.COMPLETED.value:
        return 0.0, currency_type
    amount = hourly_rate_for(offer, default_rate) * offer.meeting_duration / 60
    return round(amount, 2), currency_type


def compute_user_offer_stats(offers: Iterable[MeetingOffer], user_id: int, default_rate: Optional[float] = None) -> dict:
    stats = {
        "total": 0,
        "pending": 0,
        "accepted": 0,
        "completed": 0,
        "denied": 0,
        "started": 0,
        "cancelled": 0,
        "totalEarned": 0.0,
        "totalSpent": 0.0,
        "totalHours": 0.0,
    }

    for offer in offers:
        stats["total"] += 1
        if offer.status in stats:
            stats[offer.status] += 1

        if offer.status != OfferStatus.COMPLETED.value:
            continue

        hours = offer.meeting_duration / 60
        amount = hourly_rate_for(offer, default_rate) * hours
        stats["totalHours"] += hours
        if offer.inviter_id == user_id:
            stats["totalEarned"] += amount
        else:
            stats["totalSpent"] += amount

    # Round to 2 decimal places
    stats["totalEarned"] = round(stats["totalEarned"], 2)
    stats["totalSpent"] = round(stats["totalSpent"], 2)
    stats["totalHours"] = round(stats["totalHours"], 2)
    return stats
