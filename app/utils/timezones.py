"""
Time zone helpers.

Timestamps are stored as naive UTC datetimes. Operating hours are compared
in the room's own zone, resolved through pytz so daylight saving rules of
the zone apply.
"""
import logging
from datetime import datetime, timezone

import pytz

from app.config import settings

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_zone(name: str):
    try:
        return pytz.timezone(name)
    except pytz.exceptions.UnknownTimeZoneError:
        logger.warning(f"Unknown time zone {name!r}, falling back to {settings.DEFAULT_TIMEZONE}")
        return pytz.timezone(settings.DEFAULT_TIMEZONE)


def is_known_zone(name: str) -> bool:
    return name in pytz.all_timezones_set


def to_utc_naive(value: datetime, zone) -> datetime:
    """Normalise to naive UTC; naive input is read as wall-clock time in ``zone``."""
    if value.tzinfo is None:
        value = zone.localize(value)
    return value.astimezone(pytz.utc).replace(tzinfo=None)


def to_local(value: datetime, zone) -> datetime:
    """Convert a stored naive UTC datetime to wall-clock time in ``zone``."""
    return pytz.utc.localize(value).astimezone(zone)


def as_utc(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def naive_utc(value):
    """Drop the offset of an aware datetime after converting it to UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(pytz.utc).replace(tzinfo=None)
    return value


def iso_utc(value: datetime) -> str:
    """Render a stored naive UTC datetime the way the response models do."""
    return value.isoformat() + "Z"
