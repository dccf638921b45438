from sqlalchemy import Column, Integer, String, event, inspect
from sqlalchemy.orm import relationship
from hotel_booking.db import Base
from hotel_booking.models.enums import UserRole
from hotel_booking.utils.passwords import get_password_hash


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.GUEST.value)
    phone_number = Column(String(20), nullable=False)

    bookings = relationship(
        "Booking", back_populates="user", cascade="all, delete-orphan"
    )


@event.listens_for(User, "before_insert")
def hash_password_on_insert(mapper, connection, target):
    if target.password:
        target.password = get_password_hash(target.password)


@event.listens_for(User, "before_update")
def hash_password_on_update(mapper, connection, target):
    if inspect(target).attrs.password.history.has_changes():
        target.password = get_password_hash(target.password)
