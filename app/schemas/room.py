from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional
from app.config import settings
from app.utils.timezones import is_known_zone


def _check_clock(value):
    if value is None:
        return value
    parts = value.split(":")
    if len(parts) != 2 or not all(p.isdigit() and len(p) == 2 for p in parts):
        raise ValueError("Time must be formatted as HH:MM")
    if int(parts[0]) > 23 or int(parts[1]) > 59:
        raise ValueError("Time must be formatted as HH:MM")
    return value


def _check_zone(value):
    if value is not None and not is_known_zone(value):
        raise ValueError(f"Unknown time zone: {value}")
    return value


class RoomBase(BaseModel):
    name: str
    capacity: int = Field(gt=0)
    location: Optional[str] = None
    is_active: bool = True
    opening_time: str = settings.DEFAULT_OPENING_TIME
    closing_time: str = settings.DEFAULT_CLOSING_TIME
    timezone: str = settings.DEFAULT_TIMEZONE
    image: Optional[str] = None

    @field_validator("opening_time", "closing_time")
    @classmethod
    def check_clock(cls, value):
        return _check_clock(value)

    @field_validator("timezone")
    @classmethod
    def check_zone(cls, value):
        return _check_zone(value)

    @model_validator(mode="after")
    def check_hours_order(self):
        if self.opening_time >= self.closing_time:
            raise ValueError("Opening time must be before closing time")
        return self


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    name: Optional[str] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    location: Optional[str] = None
    is_active: Optional[bool] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    timezone: Optional[str] = None
    image: Optional[str] = None

    @field_validator("opening_time", "closing_time")
    @classmethod
    def check_clock(cls, value):
        return _check_clock(value)

    @field_validator("timezone")
    @classmethod
    def check_zone(cls, value):
        return _check_zone(value)


class RoomResponse(RoomBase):
    id: int

    model_config = ConfigDict(from_attributes=True)
