from pydantic import model_validator
from datetime import date
from typing import Optional
from hotel_booking.models.enums import BookingStatus
from hotel_booking.schemas.base import CamelModel
from hotel_booking.schemas.room import RoomResponse
from hotel_booking.schemas.user import UserResponse
from hotel_booking.utils.validation_helpers import validate_stay_dates


class BookingBase(CamelModel):
    user_id: int
    room_id: int
    check_in_date: date
    check_out_date: date
    status: BookingStatus = BookingStatus.PENDING


class BookingCreate(BookingBase):
    @model_validator(mode="after")
    def check_dates(self):
        validate_stay_dates(self.check_in_date, self.check_out_date)
        return self


class BookingUpdate(CamelModel):
    user_id: Optional[int] = None
    room_id: Optional[int] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    status: Optional[BookingStatus] = None

    @model_validator(mode="after")
    def check_dates(self):
        validate_stay_dates(self.check_in_date, self.check_out_date)
        return self


class BookingResponse(BookingBase):
    id: int


class BookingDetailResponse(BookingResponse):
    room: Optional[RoomResponse] = None
    user: Optional[UserResponse] = None
