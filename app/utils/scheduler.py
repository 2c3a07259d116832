import logging
from datetime import datetime
from typing import Optional, Sequence
from sqlalchemy.orm import Session
from app.models.booking import Booking, RELEASED_STATUSES
from app.utils.errors import Conflict

logger = logging.getLogger(__name__)


def find_conflicting_booking(
    db: Session,
    room_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: Optional[int] = None,
    holding_statuses: Optional[Sequence[str]] = None,
) -> Optional[Booking]:
    """
    Return the earliest booking on the room whose half-open interval
    [start, end) overlaps the requested one. By default every booking that
    is not cancelled or rejected holds the room; ``holding_statuses``
    narrows that to the given statuses.
    """
    query = db.query(Booking).filter(
        Booking.room_id == room_id,
        Booking.start_time < end_time,
        Booking.end_time > start_time,
    )
    if holding_statuses is None:
        query = query.filter(Booking.status.notin_(RELEASED_STATUSES))
    else:
        query = query.filter(Booking.status.in_(holding_statuses))
    if exclude_booking_id is not None:
        query = query.filter(Booking.id != exclude_booking_id)
    return query.order_by(Booking.start_time).first()


def ensure_no_conflict(
    db: Session,
    room_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: Optional[int] = None,
    message: str = "Room is already booked for this time slot",
    holding_statuses: Optional[Sequence[str]] = None,
):
    """
    Raise ``Conflict`` naming the first overlapping booking. Create and update
    use the default holding set (anything not cancelled or rejected); approval
    passes ``CONFIRMED_STATUSES`` so that a pending request never blocks the
    approval of another pending request it overlaps.
    """
    conflicting = find_conflicting_booking(
        db, room_id, start_time, end_time, exclude_booking_id, holding_statuses
    )
    if conflicting:
        logger.error(
            f"Overlapping booking {conflicting.id} found for room_id: {room_id}, "
            f"time: {start_time} to {end_time}"
        )
        raise Conflict(message, conflicting)
