from pydantic import EmailStr, Field, field_validator
from typing import Optional
from hotel_booking.models.enums import UserRole
from hotel_booking.schemas.base import CamelModel
from hotel_booking.utils.validation_helpers import validate_not_blank


class UserBase(CamelModel):
    full_name: str = Field(max_length=255)
    email: EmailStr
    phone_number: str = Field(max_length=20)
    role: UserRole = UserRole.GUEST

    @field_validator("full_name", "phone_number")
    @classmethod
    def check_not_blank(cls, value):
        return validate_not_blank(value)


class UserCreate(UserBase):
    password: str = Field(min_length=8)


class UserUpdate(CamelModel):
    full_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    role: Optional[UserRole] = None

    @field_validator("full_name", "phone_number")
    @classmethod
    def check_not_blank(cls, value):
        return validate_not_blank(value)


class UserResponse(CamelModel):
    id: int
    full_name: str
    email: str
    phone_number: str
    role: UserRole
