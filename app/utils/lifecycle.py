"""
Booking status workflow.

    pending  -> approved   (admin, no overlapping approved booking)
    pending  -> rejected   (admin)
    pending  -> cancelled  (owner, before the booking starts)
    approved -> completed  (admin)
    approved -> cancelled  (owner, before the booking starts)

Every successful transition appends a ``BookingStatusChange`` row in the
same commit as the status write.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.booking import Booking, BookingStatus, BookingStatusChange, CONFIRMED_STATUSES, TERMINAL_STATUSES
from app.utils.errors import Forbidden, Internal, InvalidState
from app.utils.locks import room_lock
from app.utils.scheduler import ensure_no_conflict
from app.utils.timezones import utcnow

logger = logging.getLogger(__name__)

ADMIN = "admin"
OWNER = "owner"

TRANSITIONS = {
    (BookingStatus.PENDING, BookingStatus.APPROVED): ADMIN,
    (BookingStatus.PENDING, BookingStatus.REJECTED): ADMIN,
    (BookingStatus.PENDING, BookingStatus.CANCELLED): OWNER,
    (BookingStatus.APPROVED, BookingStatus.COMPLETED): ADMIN,
    (BookingStatus.APPROVED, BookingStatus.CANCELLED): OWNER,
}

# Statuses an admin may set through the status endpoint
ADMIN_TARGETS = (BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.COMPLETED)


def is_owner(booking: Booking, actor: dict) -> bool:
    return booking.user_id == actor["id"]


def is_admin(actor: dict) -> bool:
    return actor.get("role") == "admin"


def assert_transition(booking: Booking, target: BookingStatus, actor: dict, now: Optional[datetime] = None):
    current = BookingStatus(booking.status)
    required = TRANSITIONS.get((current, target))
    if required is None:
        logger.error(f"Refused transition {current.value} -> {target.value} for booking {booking.id}")
        raise InvalidState(
            f"A {current.value} booking cannot be changed to {target.value}",
            current.value,
        )
    if required == ADMIN and not is_admin(actor):
        raise InvalidState(f"Only an admin can mark a booking {target.value}", current.value)
    if required == OWNER and not is_owner(booking, actor):
        raise InvalidState(f"Only the requester can mark a booking {target.value}", current.value)
    if target == BookingStatus.CANCELLED and booking.start_time <= (now or utcnow()):
        raise InvalidState("Cannot cancel a booking that has already started", current.value)


def transition(
    db: Session,
    booking: Booking,
    target: BookingStatus,
    actor: dict,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingStatusChange:
    """
    Move ``booking`` to ``target`` and record who did it. Approval re-checks
    the room against approved bookings while holding the room lock.
    """
    with room_lock(booking.room_id):
        db.refresh(booking)
        assert_transition(booking, target, actor, now)
        if target == BookingStatus.APPROVED:
            ensure_no_conflict(
                db,
                booking.room_id,
                booking.start_time,
                booking.end_time,
                exclude_booking_id=booking.id,
                message="Cannot approve booking because of a schedule conflict",
                holding_statuses=CONFIRMED_STATUSES,
            )

        change = BookingStatusChange(
            actor_id=actor["id"],
            from_status=booking.status,
            to_status=target.value,
            note=note,
        )
        booking.status = target.value
        booking.status_changes.append(change)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Failed to store status change for booking {booking.id}")
            raise Internal("Server error while updating booking status")

    db.refresh(booking)
    logger.info(f"Booking {booking.id}: {change.from_status} -> {change.to_status} by user {actor['id']}")
    return change


def ensure_editable(booking: Booking, actor: dict, now: Optional[datetime] = None):
    """Field edits are for the owner of a pending booking that has not started."""
    if not is_owner(booking, actor):
        raise Forbidden("Not authorized to update this booking")
    if booking.status != BookingStatus.PENDING.value:
        raise InvalidState("Only pending bookings can be edited", booking.status)
    if booking.start_time <= (now or utcnow()):
        raise InvalidState("Cannot edit a booking whose start time has passed", booking.status)


def ensure_deletable(booking: Booking, actor: dict):
    if not is_owner(booking, actor) and not is_admin(actor):
        raise Forbidden("Not authorized to delete this booking")
    if booking.status not in TERMINAL_STATUSES:
        raise InvalidState(
            "Only cancelled, rejected or completed bookings can be deleted",
            booking.status,
        )
