from sqlalchemy import Column, Date, ForeignKey, Integer, String
from sqlalchemy.ext.hybrid import hybrid_method
from sqlalchemy.orm import relationship
from hotel_booking.db import Base
from hotel_booking.models.enums import BookingStatus


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)

    room = relationship("Room", back_populates="bookings")
    user = relationship("User", back_populates="bookings")
    payments = relationship(
        "Payment", back_populates="booking", cascade="all, delete-orphan"
    )

    @hybrid_method
    def overlaps(self, start, end):
        """
        Half-open interval intersection of [check_in_date, check_out_date)
        with [start, end). A stay ending on the day another starts does not
        overlap it.
        """
        return (self.check_out_date > start) & (self.check_in_date < end)
