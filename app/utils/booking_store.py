"""
Read-side queries over bookings: paginated listings, the admin search and
the reporting aggregates. Nothing here enforces booking rules.
"""
import calendar
import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import desc, func
from sqlalchemy.orm import Query, Session, joinedload

from app.models.booking import Booking, BookingStatus
from app.models.room import Room
from app.utils.errors import InvalidInput

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "start_time": Booking.start_time,
    "end_time": Booking.end_time,
    "created_at": Booking.created_at,
    "updated_at": Booking.updated_at,
    "status": Booking.status,
    "activity_name": Booking.activity_name,
    "participants_count": Booking.participants_count,
}

PERIODS = ("week", "month", "year")
TOP_ROOMS_LIMIT = 5


def _sorted_page(query: Query, page: int, limit: int, sort_by: str, sort_order: str) -> Tuple[List[Booking], int]:
    column = SORT_FIELDS.get(sort_by)
    if column is None:
        raise InvalidInput(f"Cannot sort by {sort_by}. Allowed: {', '.join(SORT_FIELDS)}")
    if sort_order not in ("asc", "desc"):
        raise InvalidInput("Sort order must be asc or desc")

    total = query.count()
    ordering = column.desc() if sort_order == "desc" else column.asc()
    items = (
        query.options(joinedload(Booking.room), joinedload(Booking.user))
        .order_by(ordering, Booking.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def pagination(page: int, limit: int, total: int) -> dict:
    return {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit) if limit else 0}


def list_user_bookings(
    db: Session,
    user_id: int,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "start_time",
    sort_order: str = "desc",
) -> Tuple[List[Booking], int]:
    query = db.query(Booking).filter(Booking.user_id == user_id)
    if status:
        query = query.filter(Booking.status == status)
    return _sorted_page(query, page, limit, sort_by, sort_order)


def matches_search(booking: Booking, text: str) -> bool:
    needle = text.lower()
    haystack = [
        booking.activity_name,
        booking.purpose,
        booking.user.name if booking.user else None,
        booking.user.email if booking.user else None,
        booking.room.name if booking.room else None,
    ]
    return any(value and needle in value.lower() for value in haystack)


def list_bookings(
    db: Session,
    search: Optional[str] = None,
    status: Optional[str] = None,
    room_id: Optional[int] = None,
    user_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> Tuple[List[Booking], int]:
    """
    Admin listing. Column filters run in the database; ``search`` is applied
    to the fetched page afterwards, so ``total`` counts the unsearched set.
    """
    query = db.query(Booking)
    if status:
        query = query.filter(Booking.status == status)
    if room_id:
        query = query.filter(Booking.room_id == room_id)
    if user_id:
        query = query.filter(Booking.user_id == user_id)
    if start_date:
        query = query.filter(Booking.start_time >= start_date)
    if end_date:
        query = query.filter(Booking.start_time <= end_date)

    items, total = _sorted_page(query, page, limit, sort_by, sort_order)
    if search:
        items = [booking for booking in items if matches_search(booking, search)]
    return items, total


def _shift_months(value: datetime, months: int) -> datetime:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def period_start(period: str, now: datetime) -> datetime:
    if period == "week":
        return now - timedelta(days=7)
    if period == "year":
        return _shift_months(now, -12)
    return _shift_months(now, -1)


def booking_statistics(db: Session, period: str, now: datetime) -> dict:
    if period not in PERIODS:
        raise InvalidInput(f"Period must be one of: {', '.join(PERIODS)}")
    start_date = period_start(period, now)
    in_range = (Booking.created_at >= start_date, Booking.created_at <= now)

    counts = {status.value: 0 for status in BookingStatus}
    rows = db.query(Booking.status, func.count(Booking.id)).filter(*in_range).group_by(Booking.status).all()
    for status, count in rows:
        counts[status] = count
    total = sum(counts.values())

    count_label = func.count(Booking.id).label("count")
    top_rooms = (
        db.query(Room.id, Room.name, count_label)
        .join(Booking, Booking.room_id == Room.id)
        .filter(*in_range)
        .group_by(Room.id, Room.name)
        .order_by(desc("count"), Room.id)
        .limit(TOP_ROOMS_LIMIT)
        .all()
    )

    day = func.date(Booking.created_at)
    trends = db.query(day.label("day"), func.count(Booking.id)).filter(*in_range).group_by(day).order_by(day).all()

    logger.debug(f"Computed {period} statistics over {total} bookings")
    return {
        "period": period,
        "date_range": {"start_date": start_date, "end_date": now},
        "summary": {
            "total": total,
            **counts,
            "approval_rate": round(counts["approved"] / total * 100, 1) if total else 0.0,
        },
        "most_booked_rooms": [
            {"room_id": room_id, "room_name": name, "count": count} for room_id, name, count in top_rooms
        ],
        "booking_trends": [{"date": str(day_value), "count": count} for day_value, count in trends],
    }


def upcoming_bookings(db: Session, days: int, now: datetime) -> List[Booking]:
    return (
        db.query(Booking)
        .options(joinedload(Booking.room), joinedload(Booking.user))
        .filter(
            Booking.status == BookingStatus.APPROVED.value,
            Booking.start_time >= now,
            Booking.start_time <= now + timedelta(days=days),
        )
        .order_by(Booking.start_time.asc())
        .all()
    )
