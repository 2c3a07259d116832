from datetime import datetime
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.db import get_db
from app.models.booking import Booking, BookingStatus
from app.schemas.booking import (
    BookingList,
    BookingPage,
    BookingResponse,
    BookingStatistics,
    MessageResponse,
    StatusUpdate,
)
from app.utils import booking_store
from app.utils.auth import get_current_user, require_admin
from app.utils.documents import delete_document, public_url, save_document
from app.utils.errors import Forbidden, Internal, InvalidInput, NotFound
from app.utils.lifecycle import (
    ADMIN_TARGETS,
    ensure_deletable,
    ensure_editable,
    is_admin,
    is_owner,
    transition,
)
from app.utils.locks import room_lock
from app.utils.notifications import build_status_email, send_status_notification
from app.utils.scheduler import ensure_no_conflict
from app.utils.timezones import as_utc, naive_utc, utcnow
from app.utils.validation_helpers import (
    check_capacity,
    check_interval,
    clean_text,
    get_active_room,
    parse_contact_person,
    parse_equipment,
    validate_booking_request,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)

STATUS_MESSAGES = {
    BookingStatus.APPROVED: "Booking approved",
    BookingStatus.REJECTED: "Booking rejected",
    BookingStatus.COMPLETED: "Booking marked as completed",
}


def get_booking_or_404(db: Session, booking_id: str) -> Booking:
    # Malformed ids are reported the same way as missing ones
    if not booking_id.isdigit():
        raise NotFound("Booking not found")
    booking = db.query(Booking).filter(Booking.id == int(booking_id)).first()
    if not booking:
        logger.error(f"Booking not found: {booking_id}")
        raise NotFound("Booking not found")
    return booking


def serialize_booking(request: Request, booking: Booking) -> BookingResponse:
    response = BookingResponse.model_validate(booking)
    response.document_url = public_url(request, booking.document_path)
    response.room_image_url = public_url(request, booking.room.image) if booking.room else None
    return response


def notify(background_tasks: BackgroundTasks, booking: Booking, note: Optional[str] = None):
    """Queue the status email for a committed transition; build failures are logged only."""
    try:
        message = build_status_email(booking, note)
    except Exception:
        logger.exception(f"Could not build notification for booking {booking.id}")
        return
    background_tasks.add_task(send_status_notification, *message)


def store_write(db: Session, new_document: Optional[str], action: str):
    """Commit the session; on failure drop the document saved for this request."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        delete_document(new_document)
        logger.exception(f"Store failure while trying to {action}")
        raise Internal(f"Server error while trying to {action}")


def remove_booking(db: Session, booking: Booking):
    document_path = booking.document_path
    db.delete(booking)
    store_write(db, None, "delete booking")
    delete_document(document_path)
    logger.debug(f"Deleted booking: {booking.id}")


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new booking",
    description="Request a room for a time interval. The booking starts as pending. Requires authentication."
)
def create_booking(
    request: Request,
    room_id: Optional[int] = Form(None),
    activity_name: Optional[str] = Form(None),
    purpose: Optional[str] = Form(None),
    start_time: Optional[str] = Form(None),
    end_time: Optional[str] = Form(None),
    participants_count: Optional[int] = Form(None),
    contact_person: Optional[str] = Form(None),
    equipment: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    document: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Create a booking request.
    Requires authentication.

    - **room_id**: ID of the room to book.
    - **activity_name**: Name of the activity.
    - **start_time** / **end_time**: ISO 8601 timestamps; without an offset they are read in the room's time zone.
    - **participants_count**: Optional, defaults to 1, at most the room capacity.
    - **contact_person**: Optional JSON object with name, phone and email.
    - **equipment**: Optional JSON list or comma separated string.
    - **document**: Optional attachment.
    """
    logger.debug(f"Creating booking for user: {current_user['username']}, room_id: {room_id}")

    room, start, end = validate_booking_request(
        db, room_id, activity_name, start_time, end_time, participants_count
    )
    with room_lock(room.id):
        ensure_no_conflict(db, room.id, start, end)

        db_booking = Booking(
            room_id=room.id,
            user_id=current_user["id"],
            activity_name=activity_name.strip(),
            purpose=clean_text(purpose),
            start_time=start,
            end_time=end,
            participants_count=participants_count or 1,
            notes=clean_text(notes),
            contact_person=parse_contact_person(contact_person),
            equipment=parse_equipment(equipment),
            status=BookingStatus.PENDING.value,
        )
        document_path = save_document(document) if document and document.filename else None
        db_booking.document_path = document_path
        db.add(db_booking)
        store_write(db, document_path, "create booking")

    db.refresh(db_booking)
    logger.debug(f"Created booking: {db_booking.id}, {db_booking.start_time} to {db_booking.end_time}")
    return serialize_booking(request, db_booking)


@router.get(
    "/my-bookings",
    response_model=BookingPage,
    summary="List own bookings",
    description="Retrieve a page of the caller's bookings."
)
def get_my_bookings(
    request: Request,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = "start_time",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    - **status**: Optional status filter.
    - **page** / **limit**: Pagination.
    - **sort_by** / **sort_order**: Sort field and direction (asc or desc).
    """
    bookings, total = booking_store.list_user_bookings(
        db, current_user["id"], status_filter, page, limit, sort_by, sort_order
    )
    logger.debug(f"Retrieved {len(bookings)} bookings for user {current_user['username']}")
    return BookingPage(
        count=len(bookings),
        pagination=booking_store.pagination(page, limit, total),
        data=[serialize_booking(request, booking) for booking in bookings],
    )


@router.get(
    "/",
    response_model=BookingPage,
    summary="List all bookings",
    description="Admin listing with filters, pagination and a text search over the fetched page."
)
def get_bookings(
    request: Request,
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    room_id: Optional[int] = None,
    user_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    """
    - **search**: Case-insensitive text matched against activity, purpose, requester name/email and room name.
    - **start_date** / **end_date**: Range on the booking start time.
    """
    bookings, total = booking_store.list_bookings(
        db,
        search=search,
        status=status_filter,
        room_id=room_id,
        user_id=user_id,
        start_date=naive_utc(start_date),
        end_date=naive_utc(end_date),
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return BookingPage(
        count=len(bookings),
        pagination=booking_store.pagination(page, limit, total),
        data=[serialize_booking(request, booking) for booking in bookings],
    )


@router.get(
    "/admin/stats",
    response_model=BookingStatistics,
    summary="Booking statistics",
    description="Status counts, approval rate, most booked rooms and daily trend for a period."
)
def get_booking_statistics(
    period: str = "month",
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    return BookingStatistics(**booking_store.booking_statistics(db, period, utcnow()))


@router.get(
    "/admin/upcoming",
    response_model=BookingList,
    summary="Upcoming approved bookings",
    description="Approved bookings starting within the next number of days, soonest first."
)
def get_upcoming_bookings(
    request: Request,
    days: int = Query(7, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    bookings = booking_store.upcoming_bookings(db, days, utcnow())
    return BookingList(count=len(bookings), data=[serialize_booking(request, booking) for booking in bookings])


@router.delete(
    "/admin/{booking_id}",
    response_model=MessageResponse,
    summary="Delete a booking as admin",
    description="Delete any cancelled, rejected or completed booking."
)
def admin_delete_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    booking = get_booking_or_404(db, booking_id)
    ensure_deletable(booking, current_user)
    remove_booking(db, booking)
    return MessageResponse(message="Booking deleted by admin")


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking by ID",
    description="Retrieve a booking. Only its requester or an admin may read it."
)
def get_booking(
    booking_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    booking = get_booking_or_404(db, booking_id)
    if not is_owner(booking, current_user) and not is_admin(current_user):
        logger.error(f"User {current_user['username']} not authorized to read booking {booking_id}")
        raise Forbidden("Not authorized to access this booking")
    return serialize_booking(request, booking)


@router.put(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Update a booking",
    description="Edit a pending booking before it starts. Requires ownership."
)
def update_booking(
    booking_id: str,
    request: Request,
    activity_name: Optional[str] = Form(None),
    purpose: Optional[str] = Form(None),
    start_time: Optional[str] = Form(None),
    end_time: Optional[str] = Form(None),
    participants_count: Optional[int] = Form(None),
    contact_person: Optional[str] = Form(None),
    equipment: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    document: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Update any subset of the booking's fields.
    Changing the interval re-runs the full validation and conflict check;
    other edits only check what they touch.
    """
    db_booking = get_booking_or_404(db, booking_id)
    ensure_editable(db_booking, current_user)

    update_data = {}
    if activity_name is not None:
        if not activity_name.strip():
            raise InvalidInput("Activity name cannot be empty")
        update_data["activity_name"] = activity_name.strip()
    if purpose is not None:
        update_data["purpose"] = clean_text(purpose)
    if notes is not None:
        update_data["notes"] = clean_text(notes)
    if contact_person is not None:
        update_data["contact_person"] = parse_contact_person(contact_person)
    if equipment is not None:
        update_data["equipment"] = parse_equipment(equipment)
    if participants_count is not None:
        update_data["participants_count"] = participants_count

    with room_lock(db_booking.room_id):
        if start_time is not None or end_time is not None:
            room = get_active_room(db, db_booking.room_id)
            new_start, new_end = check_interval(
                room,
                start_time or as_utc(db_booking.start_time),
                end_time or as_utc(db_booking.end_time),
                update_data.get("participants_count", db_booking.participants_count),
            )
            ensure_no_conflict(db, room.id, new_start, new_end, exclude_booking_id=db_booking.id)
            update_data["start_time"] = new_start
            update_data["end_time"] = new_end
        elif participants_count is not None:
            check_capacity(db_booking.room, participants_count)

        old_document = db_booking.document_path
        new_document = save_document(document) if document and document.filename else None
        if new_document:
            update_data["document_path"] = new_document

        for key, value in update_data.items():
            setattr(db_booking, key, value)
        store_write(db, new_document, "update booking")

    if new_document and old_document:
        delete_document(old_document)
    db.refresh(db_booking)
    logger.debug(f"Updated booking: {booking_id}, fields: {sorted(update_data)}")
    return serialize_booking(request, db_booking)


@router.patch(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a booking",
    description="Cancel a pending or approved booking before it starts. Requires ownership."
)
def cancel_booking(
    booking_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    db_booking = get_booking_or_404(db, booking_id)
    if not is_owner(db_booking, current_user):
        logger.error(f"User {current_user['username']} not authorized to cancel booking {booking_id}")
        raise Forbidden("Not authorized to cancel this booking")

    note = "Cancelled by requester"
    transition(db, db_booking, BookingStatus.CANCELLED, current_user, note)
    notify(background_tasks, db_booking, note)
    return serialize_booking(request, db_booking)


@router.patch(
    "/{booking_id}/status",
    response_model=BookingResponse,
    summary="Set booking status",
    description="Approve, reject or complete a booking. Admin only."
)
def update_booking_status(
    booking_id: str,
    status_update: StatusUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_admin),
):
    """
    - **status**: approved, rejected or completed.
    - **admin_note**: Optional note shown to the requester.

    Approval re-checks the room for overlapping bookings.
    """
    try:
        target = BookingStatus(status_update.status)
    except ValueError:
        target = None
    if target not in ADMIN_TARGETS:
        raise InvalidInput("Status must be approved, rejected or completed")

    db_booking = get_booking_or_404(db, booking_id)
    note = clean_text(status_update.admin_note)
    transition(db, db_booking, target, current_user, note)
    notify(background_tasks, db_booking, note)
    logger.info(f"{STATUS_MESSAGES[target]}: {booking_id}")
    return serialize_booking(request, db_booking)


@router.delete(
    "/{booking_id}",
    response_model=MessageResponse,
    summary="Delete a booking",
    description="Delete an own booking once it is cancelled, rejected or completed."
)
def delete_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Delete a booking and its attached document.
    Requires ownership; admins use the admin delete path.
    """
    db_booking = get_booking_or_404(db, booking_id)
    if not is_owner(db_booking, current_user):
        logger.error(f"User {current_user['username']} not authorized to delete booking {booking_id}")
        raise Forbidden("Not authorized to delete this booking")
    ensure_deletable(db_booking, current_user)
    remove_booking(db, db_booking)
    return MessageResponse(message="Booking deleted")
