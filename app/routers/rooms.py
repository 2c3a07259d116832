import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from app.db import get_db
from app.models.booking import Booking
from app.models.room import Room
from app.schemas.room import RoomCreate, RoomUpdate, RoomResponse
from app.utils.auth import require_admin
from app.utils.errors import InvalidInput, NotFound

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/rooms",
    tags=["rooms"],
)


def get_room_or_404(db: Session, room_id: int) -> Room:
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise NotFound("Room not found")
    return room


@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(room: RoomCreate, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    """
    Create a new room.
    Requires admin rights.
    """
    db_room = Room(**room.model_dump())
    db.add(db_room)
    db.commit()
    db.refresh(db_room)
    logger.info(f"Room {db_room.id} created by {current_user['username']}")
    return db_room


@router.get("/", response_model=List[RoomResponse])
def get_rooms(skip: int = 0, limit: int = 100, active_only: bool = False, db: Session = Depends(get_db)):
    """
    Retrieve a list of rooms.
    """
    query = db.query(Room)
    if active_only:
        query = query.filter(Room.is_active.is_(True))
    return query.order_by(Room.id).offset(skip).limit(limit).all()


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: int, db: Session = Depends(get_db)):
    """
    Retrieve a specific room by ID.
    """
    return get_room_or_404(db, room_id)


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(room_id: int, room_update: RoomUpdate, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    """
    Update a room's details. Deactivating a room keeps its existing bookings.
    Requires admin rights.
    """
    db_room = get_room_or_404(db, room_id)

    update_data = room_update.model_dump(exclude_unset=True)
    opening = update_data.get("opening_time", db_room.opening_time)
    closing = update_data.get("closing_time", db_room.closing_time)
    if opening >= closing:
        raise InvalidInput("Opening time must be before closing time")

    for key, value in update_data.items():
        setattr(db_room, key, value)

    db.commit()
    db.refresh(db_room)
    return db_room


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(room_id: int, db: Session = Depends(get_db), current_user: dict = Depends(require_admin)):
    """
    Delete a room that has never been booked.
    Requires admin rights.
    """
    db_room = get_room_or_404(db, room_id)
    if db.query(Booking).filter(Booking.room_id == room_id).first():
        raise InvalidInput("Room has bookings; deactivate it instead")

    db.delete(db_room)
    db.commit()
    return None
