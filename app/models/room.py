from sqlalchemy.orm import relationship
from sqlalchemy import Boolean, Column, Integer, String
from app.config import settings
from app.db import Base


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    capacity = Column(Integer, nullable=False)
    location = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    # Operating hours as "HH:MM", interpreted in the room's own time zone
    opening_time = Column(String(5), nullable=False, default=settings.DEFAULT_OPENING_TIME)
    closing_time = Column(String(5), nullable=False, default=settings.DEFAULT_CLOSING_TIME)
    timezone = Column(String, nullable=False, default=settings.DEFAULT_TIMEZONE)
    image = Column(String, nullable=True)

    bookings = relationship("Booking", back_populates="room")
