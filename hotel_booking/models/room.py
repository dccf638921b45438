from sqlalchemy.orm import relationship
from sqlalchemy import JSON, Column, Integer, Numeric, String, Text
from hotel_booking.db import Base
from hotel_booking.models.enums import RoomStatus


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String(10), unique=True, index=True, nullable=False)
    room_type = Column(String(20), nullable=False)
    price_per_night = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    max_guests = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    availability_status = Column(
        String(20), nullable=False, default=RoomStatus.AVAILABLE.value
    )
    # Either a list of names or a mapping of name -> bool.
    amenities = Column(JSON, nullable=True)
    photo_gallery = Column(JSON, nullable=True)

    bookings = relationship(
        "Booking", back_populates="room", cascade="all, delete-orphan"
    )
