from enum import Enum
from sqlalchemy import JSON, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from app.db import Base
from app.utils.timezones import utcnow


class BookingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that no longer occupy the room
RELEASED_STATUSES = (BookingStatus.CANCELLED.value, BookingStatus.REJECTED.value)
TERMINAL_STATUSES = (
    BookingStatus.CANCELLED.value,
    BookingStatus.REJECTED.value,
    BookingStatus.COMPLETED.value,
)
# Statuses that an approval has to respect
CONFIRMED_STATUSES = (BookingStatus.APPROVED.value, BookingStatus.COMPLETED.value)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    activity_name = Column(String, nullable=False)
    purpose = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    participants_count = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)
    contact_person = Column(JSON, nullable=True)
    equipment = Column(JSON, nullable=True)
    document_path = Column(String, nullable=True)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    room = relationship("Room", back_populates="bookings")
    user = relationship("User", back_populates="bookings")
    status_changes = relationship(
        "BookingStatusChange",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingStatusChange.id",
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_booking_interval"),
        CheckConstraint("participants_count > 0", name="check_booking_participants_positive"),
    )

    @property
    def status_history(self):
        return self.status_changes

    @property
    def latest_change(self):
        return self.status_changes[-1] if self.status_changes else None

    @property
    def admin_note(self):
        change = self.latest_change
        return change.note if change else None

    @property
    def status_changed_by(self):
        change = self.latest_change
        return change.actor_id if change else None

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, room={self.room_id}, status={self.status})>"


class BookingStatusChange(Base):
    """One entry of a booking's append-only status history."""

    __tablename__ = "booking_status_changes"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    note = Column(Text, nullable=True)
    changed_at = Column(DateTime, nullable=False, default=utcnow)

    booking = relationship("Booking", back_populates="status_changes")
