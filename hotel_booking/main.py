import logging
import os
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from hotel_booking.routers import auth, bookings, payments, rooms, users
from hotel_booking.db import init_database
from hotel_booking.utils.errors import (
    HotelBookingError,
    hotel_booking_error_handler,
    request_validation_error_handler,
)
from hotel_booking.utils.payment_system import MockPaymentSystem, PaymentSystem

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())


@asynccontextmanager
async def lifespan(_: FastAPI):
    "lifespan for initing database"
    init_database()
    yield


def create_app(payment_system: Optional[PaymentSystem] = None) -> FastAPI:
    """Build the application and wire its collaborators."""
    application = FastAPI(
        lifespan=lifespan,
        title="Hotel booking",
        description="Rooms, bookings, guests and payments of a hotel, based on FastAPI.",
        version="1.0.0",
        license_info={
            "name": "MIT",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    application.state.payment_system = payment_system or MockPaymentSystem()

    application.add_exception_handler(HotelBookingError, hotel_booking_error_handler)
    application.add_exception_handler(RequestValidationError, request_validation_error_handler)

    application.include_router(auth.router)
    application.include_router(users.router)
    application.include_router(rooms.router)
    application.include_router(bookings.router)
    application.include_router(payments.router)
    return application


app = create_app()
