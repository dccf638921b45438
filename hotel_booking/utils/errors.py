import logging
from typing import Any, List, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class HotelBookingError(Exception):
    """Base class for errors translated into a JSON response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error

    def to_body(self) -> dict:
        body = {"message": self.message}
        if self.error is not None:
            body["error"] = self.error
        return body


class ValidationFailure(HotelBookingError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, errors: List[dict]):
        super().__init__("Validation failed")
        self.errors = errors

    def to_body(self) -> dict:
        return {"errors": self.errors}


class NotFound(HotelBookingError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")


class MissingParameter(HotelBookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidDateRange(HotelBookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateEmail(HotelBookingError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self):
        super().__init__("Email already exists")


class DuplicateRoomNumber(HotelBookingError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self):
        super().__init__("Room number already exists")


class UpstreamFailure(HotelBookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class InternalFailure(HotelBookingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def field_errors(errors: List[Any]) -> List[dict]:
    """Flatten pydantic error dicts into {field, message, type} entries."""
    result = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        result.append(
            {
                "field": ".".join(location),
                "message": error.get("msg", ""),
                "type": error.get("type", ""),
            }
        )
    return jsonable_encoder(result)


async def hotel_booking_error_handler(request: Request, exc: HotelBookingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = field_errors(exc.errors())
    logger.warning(f"Validation failed for {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ValidationFailure(errors).to_body(),
    )


def is_unique_violation(exc, column: str) -> bool:
    """True when an IntegrityError was raised by a unique constraint on ``column``."""
    message = str(getattr(exc, "orig", exc)).lower()
    return column in message and ("unique" in message or "duplicate" in message)
