from datetime import datetime
from typing import Optional
from hotel_booking.models.enums import PaymentMethod, PaymentStatus
from hotel_booking.schemas.base import CamelModel
from hotel_booking.schemas.booking import BookingResponse


class PaymentBase(CamelModel):
    booking_id: int
    amount: float
    payment_method: PaymentMethod


class PaymentCreate(PaymentBase):
    status: PaymentStatus = PaymentStatus.PENDING


class PaymentUpdate(CamelModel):
    booking_id: Optional[int] = None
    amount: Optional[float] = None
    payment_method: Optional[PaymentMethod] = None
    status: Optional[PaymentStatus] = None


class PaymentResponse(PaymentBase):
    id: int
    payment_date: datetime
    status: PaymentStatus
    transaction_id: Optional[str] = None
    processed_at: Optional[datetime] = None


class PaymentDetailResponse(PaymentResponse):
    booking: Optional[BookingResponse] = None
