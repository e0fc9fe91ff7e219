"""Meeting offer persistence and status transitions."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core import config
from app.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.timeutil import utcnow
from app.db.models.conversation import Conversation
from app.db.models.meeting import MeetingOffer, OfferStatus, TERMINAL_STATUSES
from app.db.models.skill import Skill
from app.services import gamification

logger = logging.getLogger(__name__)

# Allowed status moves. Terminal statuses have no outgoing edges.
TRANSITIONS = {
    OfferStatus.PENDING: {OfferStatus.ACCEPTED, OfferStatus.DENIED, OfferStatus.CANCELLED},
    OfferStatus.ACCEPTED: {OfferStatus.STARTED, OfferStatus.CANCELLED},
    OfferStatus.STARTED: {OfferStatus.COMPLETED, OfferStatus.CANCELLED},
}

INVITEE_ONLY = {OfferStatus.ACCEPTED, OfferStatus.DENIED}


def parse_status(value: Optional[str]) -> OfferStatus:
    try:
        return OfferStatus(value)
    except ValueError:
        raise ValidationError("Invalid status")


# --------------------------
# Repository
# --------------------------
def create_offer(
    db: Session,
    inviter_id: int,
    invitee_id: Optional[int],
    skill_id: Optional[int],
    conversation_id: Optional[int],
    meeting_location: Optional[str],
    meeting_date: Optional[datetime],
    meeting_duration: Optional[int] = None,
    inviter_message: Optional[str] = None,
) -> MeetingOffer:
    location = meeting_location.strip() if meeting_location else ""
    if not conversation_id or not invitee_id or not skill_id or not location or not meeting_date:
        raise ValidationError("Missing required fields")

    if invitee_id == inviter_id:
        raise ValidationError("Cannot send a meeting invitation to yourself")

    if meeting_duration is None:
        meeting_duration = config.DEFAULT_MEETING_DURATION
    if meeting_duration <= 0:
        raise ValidationError("meeting_duration must be a positive number of minutes")

    # Step 1: the inviter must belong to the conversation
    conversation = db.query(Conversation).filter(Conversation.id == conversation_id).first()
    if not conversation:
        raise NotFoundError("Conversation not found")
    if not conversation.has_member(inviter_id):
        raise ForbiddenError("Access denied to this conversation")

    # Step 2: the invitee must be the other participant
    if conversation.other_member(inviter_id) != invitee_id:
        raise ValidationError("Invalid invitee")

    # Step 3: skill exists
    if not db.query(Skill).filter(Skill.id == skill_id).first():
        raise NotFoundError("Skill not found")

    offer = MeetingOffer(
        conversation_id=conversation_id,
        inviter_id=inviter_id,
        invitee_id=invitee_id,
        skill_id=skill_id,
        meeting_location=location,
        meeting_date=meeting_date,
        meeting_duration=meeting_duration,
        inviter_message=inviter_message,
        status=OfferStatus.PENDING.value,
    )
    db.add(offer)
    db.commit()
    db.refresh(offer)

    logger.info(f"Meeting offer {offer.id} created: inviter={inviter_id} invitee={invitee_id} skill={skill_id}")
    return offer


def get_offer(db: Session, offer_id: int) -> MeetingOffer:
    offer = db.query(MeetingOffer).filter(MeetingOffer.id == offer_id).first()
    if not offer:
        raise NotFoundError("Meeting invitation not found")
    return offer


def get_offer_for_participant(db: Session, offer_id: int, user_id: int) -> MeetingOffer:
    offer = get_offer(db, offer_id)
    if not offer.is_participant(user_id):
        raise ForbiddenError("Access denied to this meeting")
    return offer


def list_offers_for_user(db: Session, user_id: int, status: Optional[str] = None) -> List[MeetingOffer]:
    q = db.query(MeetingOffer).filter(
        or_(MeetingOffer.inviter_id == user_id, MeetingOffer.invitee_id == user_id)
    )
    if status and status != "all":
        q = q.filter(MeetingOffer.status == parse_status(status).value)
    return q.order_by(MeetingOffer.created_at.desc(), MeetingOffer.id.desc()).all()


def list_offers_for_conversation(db: Session, conversation_id: int, user_id: int) -> List[MeetingOffer]:
    conversation = db.query(Conversation).filter(Conversation.id == conversation_id).first()
    if not conversation:
        raise NotFoundError("Conversation not found")
    if not conversation.has_member(user_id):
        raise ForbiddenError("Access denied to this conversation")

    return (
        db.query(MeetingOffer)
        .filter(MeetingOffer.conversation_id == conversation_id)
        .order_by(MeetingOffer.created_at.desc(), MeetingOffer.id.desc())
        .all()
    )


def delete_offer(db: Session, offer_id: int, requester_id: int) -> None:
    offer = get_offer(db, offer_id)
    if offer.inviter_id != requester_id:
        raise ForbiddenError("Only the inviter can delete the invitation")

    db.delete(offer)
    db.commit()
    logger.info(f"Meeting offer {offer_id} deleted by inviter {requester_id}")


# --------------------------
# Transitions
# --------------------------
def transition_offer(
    db: Session,
    offer_id: int,
    requester_id: int,
    new_status: Optional[str],
    invitee_response: Optional[str] = None,
    now: Optional[datetime] = None,
) -> MeetingOffer:
    offer = get_offer(db, offer_id)

    if not offer.is_participant(requester_id):
        raise ForbiddenError("Access denied to this meeting")

    target = parse_status(new_status)

    # Only invitee can accept/deny, both can start/complete/cancel
    if target in INVITEE_ONLY and offer.invitee_id != requester_id:
        raise ForbiddenError("Only the invitee can accept or deny the invitation")

    current = OfferStatus(offer.status)
    if current in TERMINAL_STATUSES:
        raise ValidationError(f"Meeting is already {current.value}")
    if target not in TRANSITIONS[current]:
        raise ValidationError(f"Cannot change meeting from {current.value} to {target.value}")

    now = now or utcnow()

    # a stale invitation can no longer be answered
    if current == OfferStatus.PENDING and offer.meeting_date < now:
        _apply(db, offer.id, OfferStatus.PENDING, {"status": OfferStatus.DENIED.value, "updated_at": now})
        db.commit()
        logger.info(f"Meeting offer {offer.id} expired during transition attempt")
        raise ValidationError("Meeting invitation has expired")

    values = {"status": target.value, "updated_at": now}
    if invitee_response and target in INVITEE_ONLY:
        values["invitee_response"] = invitee_response

    if not _apply(db, offer.id, current, values):
        db.rollback()
        raise ConflictError("Meeting was modified by another request, please retry")
    db.commit()
    db.refresh(offer)

    logger.info(f"Meeting offer {offer.id}: {current.value} -> {target.value} by user {requester_id}")

    if target == OfferStatus.COMPLETED:
        for user_id in (offer.inviter_id, offer.invitee_id):
            gamification.award_xp(db, user_id, config.XP_MEETING_COMPLETED, "complete_skill_exchange")

    return offer


def _apply(db: Session, offer_id: int, expected: OfferStatus, values: dict) -> bool:
    """Conditional update: only writes if the stored status is still ``expected``."""
    updated = (
        db.query(MeetingOffer)
        .filter(MeetingOffer.id == offer_id, MeetingOffer.status == expected.value)
        .update(values, synchronize_session=False)
    )
    return updated == 1
