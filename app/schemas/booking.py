from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional
from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr
from app.utils.timezones import as_utc

UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class ContactPerson(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class RoomSummary(BaseModel):
    id: int
    name: str
    capacity: int
    location: Optional[str] = None
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RequesterSummary(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    institution: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class StatusChangeResponse(BaseModel):
    actor_id: int
    from_status: str
    to_status: str
    note: Optional[str] = None
    changed_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)


class BookingResponse(BaseModel):
    id: int
    room_id: int
    user_id: int
    activity_name: str
    purpose: Optional[str] = None
    start_time: UTCDateTime
    end_time: UTCDateTime
    participants_count: int
    notes: Optional[str] = None
    contact_person: Optional[Dict[str, Any]] = None
    equipment: Optional[List[str]] = None
    document_path: Optional[str] = None
    document_url: Optional[str] = None
    room_image_url: Optional[str] = None
    status: str
    admin_note: Optional[str] = None
    status_changed_by: Optional[int] = None
    status_history: List[StatusChangeResponse] = []
    room: Optional[RoomSummary] = None
    user: Optional[RequesterSummary] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class BookingPage(BaseModel):
    success: bool = True
    count: int
    pagination: Pagination
    data: List[BookingResponse]


class BookingList(BaseModel):
    success: bool = True
    count: int
    data: List[BookingResponse]


class StatusUpdate(BaseModel):
    status: str
    admin_note: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class StatusSummary(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    cancelled: int
    completed: int
    approval_rate: float


class RoomUsage(BaseModel):
    room_id: int
    room_name: str
    count: int


class DailyCount(BaseModel):
    date: str
    count: int


class DateRange(BaseModel):
    start_date: UTCDateTime
    end_date: UTCDateTime


class BookingStatistics(BaseModel):
    success: bool = True
    period: str
    date_range: DateRange
    summary: StatusSummary
    most_booked_rooms: List[RoomUsage]
    booking_trends: List[DailyCount]
