import json
import logging
from datetime import datetime, time
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from app.models.room import Room
from app.schemas.booking import ContactPerson
from app.utils.errors import CapacityExceeded, InvalidInput, NotFound, OutOfOperatingHours
from app.utils.timezones import get_zone, to_local, to_utc_naive, utcnow

logger = logging.getLogger(__name__)

_datetime_adapter = TypeAdapter(datetime)


def parse_clock(value: str) -> time:
    """Parse an "HH:MM" operating-hours bound."""
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM")


def parse_instant(value: Union[str, datetime], zone) -> datetime:
    """Parse a timestamp to naive UTC; a value without offset is read in ``zone``."""
    try:
        parsed = value if isinstance(value, datetime) else _datetime_adapter.validate_python(value)
    except ValidationError:
        raise InvalidInput(f"Invalid date format: {value}")
    return to_utc_naive(parsed, zone)


def get_active_room(db: Session, room_id: int) -> Room:
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room or not room.is_active:
        logger.error(f"Room not found or inactive: {room_id}")
        raise NotFound("Room not found or inactive")
    return room


def check_capacity(room: Room, participants_count: Optional[int]):
    if participants_count is None:
        return
    if participants_count < 1:
        raise InvalidInput("Participants count must be a positive number")
    if participants_count > room.capacity:
        logger.error(f"Room capacity exceeded: {participants_count} > {room.capacity}")
        raise CapacityExceeded(
            f"Participants count ({participants_count}) exceeds room capacity ({room.capacity})"
        )


def check_operating_hours(room: Room, start_time: datetime, end_time: datetime):
    """
    Single-day bookings must sit inside the room's operating hours, compared
    in the room's time zone. Bookings spanning calendar dates are exempt.
    """
    zone = get_zone(room.timezone)
    local_start = to_local(start_time, zone)
    local_end = to_local(end_time, zone)
    if local_start.date() != local_end.date():
        return

    opening = parse_clock(room.opening_time)
    closing = parse_clock(room.closing_time)
    if local_start.time() < opening or local_end.time() > closing:
        logger.error(
            f"Booking {local_start.time()}-{local_end.time()} outside operating hours "
            f"{room.opening_time}-{room.closing_time} of room {room.id}"
        )
        raise OutOfOperatingHours(room.opening_time, room.closing_time)


def check_interval(
    room: Room,
    start_time: Union[str, datetime],
    end_time: Union[str, datetime],
    participants_count: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Run the interval checks against an already resolved room, in order:
    parse, ordering, not in the past, capacity, operating hours.

    Returns the interval as naive UTC datetimes.
    """
    zone = get_zone(room.timezone)
    start = parse_instant(start_time, zone)
    end = parse_instant(end_time, zone)

    if end <= start:
        raise InvalidInput("End time must be after start time")
    if start < (now or utcnow()):
        raise InvalidInput("Cannot book a time in the past")

    check_capacity(room, participants_count)
    check_operating_hours(room, start, end)
    return start, end


def validate_booking_request(
    db: Session,
    room_id: Optional[int],
    activity_name: Optional[str],
    start_time: Union[str, datetime, None],
    end_time: Union[str, datetime, None],
    participants_count: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Tuple[Room, datetime, datetime]:
    """Full create-time validation; short-circuits on the first failing check."""
    if not room_id or not activity_name or not activity_name.strip() or not start_time or not end_time:
        raise InvalidInput("Room, activity name, start time and end time are required")
    room = get_active_room(db, room_id)
    start, end = check_interval(room, start_time, end_time, participants_count, now)
    return room, start, end


def parse_equipment(raw: Optional[str]) -> Optional[List[str]]:
    """
    Equipment arrives either as a JSON list or as a comma separated string.
    Anything that does not decode to a list, string or object is read in
    the delimited form.
    """
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return [item.strip() for item in raw.split(",") if item.strip()]

    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, dict):
        raise InvalidInput("Equipment must be a list or a comma separated string")
    return [item.strip() for item in raw.split(",") if item.strip()]


def parse_contact_person(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    if raw is None or not raw.strip():
        return None
    try:
        return ContactPerson.model_validate_json(raw).model_dump(exclude_none=True)
    except ValidationError:
        raise InvalidInput("Contact person must be a JSON object with name, phone and email")


def clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None
