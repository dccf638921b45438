from pydantic import Field, field_validator
from typing import Dict, List, Optional, Union
from hotel_booking.models.enums import RoomStatus, RoomType
from hotel_booking.schemas.base import CamelModel
from hotel_booking.utils.validation_helpers import validate_not_blank

AmenitiesData = Union[List[str], Dict[str, bool]]
PhotoGallery = Union[List[str], Dict[str, str]]


class RoomBase(CamelModel):
    room_number: str = Field(max_length=10)
    room_type: RoomType
    price_per_night: float = Field(gt=0)
    max_guests: int = Field(gt=0)
    description: Optional[str] = None
    availability_status: RoomStatus = RoomStatus.AVAILABLE
    amenities: Optional[AmenitiesData] = None
    photo_gallery: Optional[PhotoGallery] = None

    @field_validator("room_number")
    @classmethod
    def check_room_number(cls, value):
        return validate_not_blank(value)


class RoomCreate(RoomBase):
    pass


class RoomUpdate(CamelModel):
    room_number: Optional[str] = Field(default=None, max_length=10)
    room_type: Optional[RoomType] = None
    price_per_night: Optional[float] = Field(default=None, gt=0)
    max_guests: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = None
    availability_status: Optional[RoomStatus] = None
    amenities: Optional[AmenitiesData] = None
    photo_gallery: Optional[PhotoGallery] = None

    @field_validator("room_number")
    @classmethod
    def check_room_number(cls, value):
        return validate_not_blank(value)


class RoomResponse(RoomBase):
    id: int


class RoomAvailabilityResponse(CamelModel):
    available_rooms: List[RoomResponse]
    total_available: int


class RoomAmenitiesResponse(CamelModel):
    rooms: List[RoomResponse]
    total_rooms: int
    requested_amenities: List[str]
